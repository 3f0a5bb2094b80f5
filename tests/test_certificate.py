"""Tests for PDF certificate rendering."""

from datetime import datetime

from chainheart.services.certificate import CertificateRenderer

DONATION = {
    "tx_hash": "0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060",
    "charity_id": 1,
    "charity_name": "Clean Water",
    "campaign_title": None,
    "amount": "0.5",
    "timestamp": datetime(2024, 1, 15, 9, 5, 30),
}


def test_renders_pdf_document():
    pdf = CertificateRenderer().render(DONATION)

    assert pdf.startswith(b"%PDF")
    assert pdf.rstrip().endswith(b"%%EOF")


def test_certificate_content():
    pdf = CertificateRenderer(brand_name="ChainHeart", compress=False).render(DONATION)

    assert b"ChainHeart" in pdf
    assert b"CERTIFICATE OF DONATION" in pdf
    assert b"0.5 ETH" in pdf
    assert b"General Support" in pdf
    assert b"2024-01-15 09:05:30" in pdf
    assert b"https://sepolia.etherscan.io/tx/" + DONATION["tx_hash"].encode() in pdf


def test_certificate_names_campaign():
    pdf = CertificateRenderer(compress=False).render(dict(DONATION, campaign_title="Wells 2024"))

    assert b"Wells 2024" in pdf
    assert b"General Support" not in pdf
