"""Tests for the command-line interface."""

import pytest

from chainheart.cli import create_parser, main
from chainheart.db.session import dispose_db
from chainheart.services.ledger_store import LedgerStore


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    """Point the CLI at a file-backed SQLite database."""
    monkeypatch.setenv("DB_URL", f"sqlite:///{tmp_path / 'ledger.db'}")
    monkeypatch.setenv("NOTIFIER", "log")
    dispose_db()
    yield tmp_path
    dispose_db()


def test_parser_commands():
    parser = create_parser()

    args = parser.parse_args(["export", "--donor", "0xabc", "-o", "out.csv"])
    assert (args.command, args.donor, args.output) == ("export", "0xabc", "out.csv")

    args = parser.parse_args(["leaderboard"])
    assert args.limit == 10


def test_missing_command_exits(cli_db):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_configuration_error_exits(monkeypatch, capsys):
    monkeypatch.delenv("DB_URL", raising=False)

    with pytest.raises(SystemExit) as exc:
        main(["stats"])

    assert exc.value.code == 1
    assert "Configuration error" in capsys.readouterr().err


def test_db_check_fails_before_init(cli_db):
    with pytest.raises(SystemExit) as exc:
        main(["db", "check"])
    assert exc.value.code == 1


def test_db_init_then_reports(cli_db, capsys):
    main(["db", "init"])
    main(["db", "check"])
    LedgerStore().record_donation(
        {"txHash": "0x01", "donorAddress": "0xabc", "charityId": 1, "amount": "1.25", "charityName": "Clean Water"}
    )

    main(["stats"])
    main(["leaderboard", "--limit", "5"])
    output = capsys.readouterr().out

    assert "All required tables exist" in output
    assert "Total donated:    1.25 ETH" in output
    assert "0xabc  1.25 ETH (1 donations)" in output


def test_export_to_file(cli_db):
    main(["db", "init"])
    LedgerStore().record_donation({"txHash": "0x01", "donorAddress": "0xabc", "charityId": 1, "amount": "2"})
    target = cli_db / "history.csv"

    main(["export", "--donor", "0xabc", "--output", str(target)])

    lines = target.read_text().splitlines()
    assert lines[0].startswith("Date,Transaction Hash")
    assert ",0x01,,Direct Donation,2,," in lines[1]


def test_certificate_for_unknown_donation_exits(cli_db):
    main(["db", "init"])

    with pytest.raises(SystemExit) as exc:
        main(["certificate", "--tx-hash", "0xmissing", "--output", str(cli_db / "c.pdf")])
    assert exc.value.code == 1
