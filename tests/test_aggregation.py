"""Tests for statistics, leaderboard and CSV export."""

from datetime import datetime

import pytest

from chainheart.errors import NotFoundError, ValidationError
from chainheart.schemas import DonationRecord
from chainheart.services.aggregation import (
    AggregationEngine,
    donation_history_rows,
    rank_donors,
    render_csv,
    summarize_donations,
)

HEADER = "Date,Transaction Hash,Charity,Campaign,Amount (ETH),Block Number,Message\n"


def donation(donor, amount, tx_hash=None, anonymous=False, **fields):
    """Build a stored donation record without touching the database."""
    donation.counter += 1
    values = {
        "id": donation.counter,
        "tx_hash": tx_hash or f"0x{donation.counter:04x}",
        "donor_address": donor,
        "charity_id": 1,
        "amount": amount,
        "timestamp": datetime(2024, 1, 15, 9, 5, 30),
        "is_anonymous": anonymous,
        "created_at": datetime(2024, 1, 15, 9, 5, 31),
    }
    values.update(fields)
    return DonationRecord(**values)


donation.counter = 0


# =============================================================================
# summarize_donations
# =============================================================================

def test_summary_of_empty_ledger_is_zero():
    stats = summarize_donations([])

    assert stats.total_donations == 0
    assert stats.total_donations_eth == "0"
    assert stats.total_donors == 0
    assert stats.average_donation == "0"


def test_summary_uses_exact_decimal_arithmetic():
    stats = summarize_donations([donation("0xa", "0.1"), donation("0xb", "0.2")])

    assert stats.total_donations == 2
    assert stats.total_donations_eth == "0.3"
    assert stats.average_donation == "0.15"


def test_summary_counts_distinct_donors():
    stats = summarize_donations([
        donation("0xa", "1"),
        donation("0xa", "2"),
        donation("0xb", "3", anonymous=True),
    ])

    assert stats.total_donations == 3
    assert stats.total_donations_eth == "6"
    assert stats.total_donors == 2
    assert stats.average_donation == "2"


@pytest.mark.parametrize(
    "amounts, expected",
    [
        (["1.0000000000000000000000000001"], "1.0000000000000000000000000001"),
        (["12345678901.123456789012345678", "0.000000000000000001"], "12345678901.123456789012345679"),
        (["99999999999999999999.999999999999999999", "0.000000000000000001"], "100000000000000000000"),
    ],
)
def test_summary_total_keeps_every_digit(amounts, expected):
    stats = summarize_donations([donation("0xa", amount) for amount in amounts])

    assert stats.total_donations_eth == expected


# =============================================================================
# rank_donors
# =============================================================================

def test_leaderboard_orders_by_total_then_address():
    donations = [
        donation("0xc", "1.0"),
        donation("0xb", "2"),
        donation("0xa", "0.5"),
        donation("0xa", "1.5"),
        donation("0xd", "0.1"),
    ]

    standings = rank_donors(donations, 10)

    assert [(s.donor_address, s.total_amount, s.donation_count) for s in standings] == [
        ("0xa", "2", 2),
        ("0xb", "2", 1),
        ("0xc", "1", 1),
        ("0xd", "0.1", 1),
    ]
    assert [s.rank for s in standings] == [1, 2, 3, 4]


def test_leaderboard_skips_anonymous_donations():
    donations = [
        donation("0xa", "1"),
        donation("0xb", "100", anonymous=True),
        donation("0xa", "1", anonymous=True),
    ]

    standings = rank_donors(donations, 10)

    assert [(s.donor_address, s.total_amount, s.donation_count) for s in standings] == [("0xa", "1", 1)]


def test_leaderboard_limit():
    donations = [donation(f"0x{i}", str(i)) for i in range(1, 6)]

    assert [s.donor_address for s in rank_donors(donations, 2)] == ["0x5", "0x4"]
    assert rank_donors(donations, 0) == []
    assert len(rank_donors(donations, 50)) == 5


def test_leaderboard_totals_keep_every_digit():
    donations = [
        donation("0xa", "12345678901.123456789012345678"),
        donation("0xa", "0.000000000000000001"),
        donation("0xb", "12345678901.123456789012345678"),
    ]

    standings = rank_donors(donations, 10)

    assert [(s.donor_address, s.total_amount) for s in standings] == [
        ("0xa", "12345678901.123456789012345679"),
        ("0xb", "12345678901.123456789012345678"),
    ]


def test_leaderboard_negative_limit_rejected():
    with pytest.raises(ValidationError):
        rank_donors([donation("0xa", "1")], -1)


# =============================================================================
# CSV export
# =============================================================================

def test_csv_header_only_for_no_donations():
    assert render_csv(donation_history_rows([])) == HEADER


def test_csv_row_layout():
    rows = donation_history_rows([
        donation(
            "0xa",
            "0.5",
            tx_hash="0xabc",
            charity_name="Clean Water",
            campaign_title="Wells 2024",
            block_number=42,
            message="Keep going",
        ),
        donation("0xa", "1", tx_hash="0xdef", charity_name="Clean Water"),
    ])

    assert render_csv(rows) == (
        HEADER
        + "2024-01-15 09:05:30,0xabc,Clean Water,Wells 2024,0.5,42,Keep going\n"
        + "2024-01-15 09:05:30,0xdef,Clean Water,Direct Donation,1,,\n"
    )


def test_csv_escapes_special_characters():
    rows = donation_history_rows([
        donation(
            "0xa",
            "1",
            tx_hash="0x1",
            charity_name="Water, Inc.",
            message='She said "thanks"\nand left\r',
        ),
    ])

    line = render_csv(rows)[len(HEADER):]

    assert line == (
        '2024-01-15 09:05:30,0x1,"Water, Inc.",Direct Donation,1,,'
        '"She said ""thanks""\nand left\r"\n'
    )


# =============================================================================
# AggregationEngine
# =============================================================================

class StubRenderer:
    def __init__(self):
        self.rendered = []

    def render(self, fields):
        self.rendered.append(fields)
        return b"%PDF-stub"


def test_platform_statistics_on_empty_ledger(db):
    stats = AggregationEngine().platform_statistics()

    assert stats.model_dump() == {
        "total_donations": 0,
        "total_donations_eth": "0",
        "total_donors": 0,
        "average_donation": "0",
        "total_charities": 0,
        "total_campaigns": 0,
        "platform_fees": "0",
    }


def test_platform_statistics(store, registry, make_lifecycle, donation_data, charity_form, verification):
    registry.create_campaign({"title": "Wells", "walletAddress": "0xabc"})
    registry.create_campaign({"title": "Schools", "walletAddress": "0xabc"})
    store.record_donation(donation_data(amount="0.1"))
    store.record_donation(donation_data(amount="0.2", donorAddress="0xother"))
    store.record_withdrawal({"txHash": "0xw1", "charityId": 1, "amount": "1", "fee": "0.025"})
    store.record_withdrawal({"txHash": "0xw2", "charityId": 1, "amount": "1", "fee": "0.005"})
    store.record_withdrawal({"txHash": "0xw3", "charityId": 1, "amount": "1"})

    lifecycle = make_lifecycle()
    approved = lifecycle.submit(charity_form, verification)
    lifecycle.submit(charity_form, verification)
    lifecycle.approve(approved.id)

    stats = AggregationEngine(store=store).platform_statistics()

    assert stats.total_donations == 2
    assert stats.total_donations_eth == "0.3"
    assert stats.total_donors == 2
    assert stats.average_donation == "0.15"
    assert stats.total_campaigns == 2
    assert stats.total_charities == 1
    assert stats.platform_fees == "0.03"


def test_platform_fees_keep_every_digit(store):
    store.record_withdrawal(
        {"txHash": "0xw1", "charityId": 1, "amount": "20000000000", "fee": "12345678901.123456789012345678"}
    )
    store.record_withdrawal({"txHash": "0xw2", "charityId": 1, "amount": "1", "fee": "0.000000000000000001"})

    stats = AggregationEngine(store=store).platform_statistics()

    assert stats.platform_fees == "12345678901.123456789012345679"


def test_engine_leaderboard_and_export(store, donation_data):
    store.record_donation(donation_data(donorAddress="0xa", amount="1", txHash="0x1", message="first"))
    store.record_donation(donation_data(donorAddress="0xb", amount="3", txHash="0x2"))
    store.record_donation(donation_data(donorAddress="0xa", amount="0.5", txHash="0x3"))
    engine = AggregationEngine(store=store)

    assert [s.donor_address for s in engine.donor_leaderboard()] == ["0xb", "0xa"]
    with pytest.raises(ValidationError):
        engine.donor_leaderboard(-5)

    exported = engine.export_donation_history("0xa")
    lines = exported.splitlines()
    assert lines[0] == HEADER.strip()
    assert [line.split(",")[1] for line in lines[1:]] == ["0x1", "0x3"]
    assert engine.export_donation_history("0xnobody") == HEADER


def test_render_certificate_requires_existing_donation(store, donation_data):
    renderer = StubRenderer()
    engine = AggregationEngine(store=store, renderer=renderer)
    store.record_donation(donation_data(txHash="0xfeed", campaignTitle="Wells"))

    assert engine.render_certificate("0xfeed") == b"%PDF-stub"
    assert renderer.rendered[0]["tx_hash"] == "0xfeed"
    assert renderer.rendered[0]["campaign_title"] == "Wells"

    with pytest.raises(NotFoundError):
        engine.render_certificate("0xmissing")
