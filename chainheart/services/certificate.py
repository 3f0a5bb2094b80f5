"""PDF donation certificates rendered with reportlab."""

import io
from datetime import datetime
from typing import Any, Mapping

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from chainheart.errors import ExternalDependencyError
from chainheart.log import get_logger
from chainheart.utils.formatting import format_export_date

logger = get_logger(__name__)

GENERAL_SUPPORT = "General Support"
WATERMARK = "VERIFIED ON BLOCKCHAIN"


class CertificateRenderer:
    """Renders a one-page certificate for a recorded donation.

    Example usage:
        renderer = CertificateRenderer(brand_name="ChainHeart")
        pdf = renderer.render(donation.model_dump())
    """

    def __init__(
        self,
        brand_name: str = "ChainHeart",
        explorer_tx_url: str = "https://sepolia.etherscan.io/tx/",
        compress: bool = True,
    ):
        """Initialize the renderer.

        Args:
            brand_name: Brand line printed above the title
            explorer_tx_url: Block explorer prefix the tx hash is appended to
            compress: Compress page streams (disable to inspect the output)
        """
        self.brand_name = brand_name
        self.explorer_tx_url = explorer_tx_url
        self.compress = compress

    def render(self, donation: Mapping[str, Any]) -> bytes:
        """Render the certificate.

        Args:
            donation: Donation fields (snake_case keys of a DonationRecord)

        Returns:
            PDF document bytes

        Raises:
            ExternalDependencyError: If the PDF cannot be produced
        """
        buffer = io.BytesIO()
        try:
            pdf = canvas.Canvas(buffer, pagesize=A4, pageCompression=1 if self.compress else 0)
            pdf.setTitle(f"Donation certificate {donation.get('tx_hash', '')}")
            self._draw_watermark(pdf)
            self._draw_body(pdf, donation)
            pdf.showPage()
            pdf.save()
        except Exception as e:
            logger.error(f"Failed to render certificate for {donation.get('tx_hash')}: {e}")
            raise ExternalDependencyError("Failed to generate certificate PDF") from e

        return buffer.getvalue()

    def _draw_watermark(self, pdf: canvas.Canvas) -> None:
        width, height = A4
        pdf.saveState()
        pdf.setFillColor(colors.Color(0.9, 0.9, 0.9))
        pdf.setFont("Helvetica-Bold", 40)
        pdf.translate(width / 2, height / 2)
        pdf.rotate(45)
        pdf.drawCentredString(0, 0, WATERMARK)
        pdf.restoreState()

    def _draw_body(self, pdf: canvas.Canvas, donation: Mapping[str, Any]) -> None:
        width, height = A4
        center = width / 2
        margin = 50
        tx_hash = donation.get("tx_hash") or ""
        y = height - 90

        pdf.setFillColor(colors.cyan)
        pdf.setFont("Helvetica-Bold", 28)
        pdf.drawCentredString(center, y, self.brand_name)

        y -= 50
        pdf.setFillColor(colors.black)
        pdf.drawCentredString(center, y, "CERTIFICATE OF DONATION")

        y -= 15
        pdf.line(margin + 40, y, width - margin - 40, y)

        y -= 40
        pdf.setFont("Helvetica", 12)
        pdf.drawCentredString(center, y, "This is to officially certify that")

        y -= 28
        pdf.setFont("Helvetica-Bold", 18)
        pdf.drawCentredString(center, y, f"{donation.get('amount')} ETH")

        y -= 26
        pdf.setFont("Helvetica", 12)
        charity = donation.get("charity_name") or f"charity #{donation.get('charity_id')}"
        pdf.drawCentredString(center, y, f"was donated to {charity} for the campaign:")

        y -= 22
        pdf.setFont("Helvetica-Oblique", 14)
        campaign = donation.get("campaign_title") or GENERAL_SUPPORT
        pdf.drawCentredString(center, y, f'"{campaign}"')

        y -= 60
        timestamp = donation.get("timestamp")
        date_text = format_export_date(timestamp) if isinstance(timestamp, datetime) else str(timestamp or "")
        pdf.setFont("Helvetica", 10)
        for label, value in (("Transaction Hash:", tx_hash), ("Date:", date_text)):
            pdf.drawString(margin, y, label)
            pdf.drawRightString(width - margin, y, value)
            y -= 20

        y -= 10
        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawString(margin, y, "Blockchain Verification:")

        y -= 18
        url = f"{self.explorer_tx_url}{tx_hash}"
        pdf.setFont("Helvetica", 10)
        pdf.setFillColor(colors.blue)
        pdf.drawString(margin, y, tx_hash)
        link_width = pdf.stringWidth(tx_hash, "Helvetica", 10)
        pdf.line(margin, y - 2, margin + link_width, y - 2)
        pdf.linkURL(url, (margin, y - 3, margin + link_width, y + 10), relative=0)

        y -= 30
        pdf.setFillColor(colors.black)
        pdf.drawString(margin, y, "[Verified on Blockchain]")
