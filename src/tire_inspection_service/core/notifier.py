"""
Low-Depth Notifier

Sends an alert email when a submission contains tires with tread depth at
or below the configured threshold. Dispatch is best effort: failures are
logged and never reach the caller.
"""

import asyncio
import html
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import List, Optional

from tire_inspection_service.config.settings import settings
from tire_inspection_service.core.errors import NotificationError
from tire_inspection_service.models.inspection import TireInspection, slot_for_image

logger = logging.getLogger(__name__)


def is_low_depth(depth: float, threshold: Optional[float] = None) -> bool:
    if threshold is None:
        threshold = settings.low_depth_threshold_mm
    return depth <= threshold


def flagged_tires(records: List[TireInspection], threshold: Optional[float] = None) -> List[TireInspection]:
    """Records having at least one depth at or below the threshold"""
    return [r for r in records if any(is_low_depth(d, threshold) for d in r.depths)]


def has_low_depth(records: List[TireInspection], threshold: Optional[float] = None) -> bool:
    return bool(flagged_tires(records, threshold))


def _format_depth(depth: float) -> str:
    return f"{depth:g} mm"


def _image_links_html(images: List[str]) -> str:
    links = []
    for position, url in enumerate(images):
        label = slot_for_image(url, position).label
        links.append(f'<a href="{html.escape(url, quote=True)}" target="_blank">{label}</a>')
    return " | ".join(links)


class LowDepthNotifier:
    """Composes and sends low-depth alert emails over SMTP"""

    def __init__(
        self,
        email_user: Optional[str] = None,
        email_pass: Optional[str] = None,
        recipient: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        threshold: Optional[float] = None
    ):
        self.email_user = email_user if email_user is not None else settings.email_user
        self.email_pass = email_pass if email_pass is not None else settings.email_pass
        self.recipient = recipient or settings.alert_recipient
        self.smtp_host = smtp_host or settings.smtp_host
        self.smtp_port = smtp_port or settings.smtp_port
        self.threshold = threshold if threshold is not None else settings.low_depth_threshold_mm

    @property
    def configured(self) -> bool:
        return bool(self.email_user and self.email_pass)

    def build_message(self, plate: str, tires: List[TireInspection]) -> EmailMessage:
        """
        Build the alert email for the flagged tires of one submission

        Args:
            plate: Vehicle plate
            tires: Records already filtered to low-depth tires

        Returns:
            Multipart message (plain text with an HTML alternative)
        """
        generated_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        msg = EmailMessage()
        msg["Subject"] = f"URGENT: {len(tires)} tire(s) with critical tread depth - plate {plate}"
        msg["From"] = f'"Tire Inspection Alerts" <{self.email_user}>'
        msg["To"] = self.recipient

        lines = [
            "Low tread depth alert",
            "",
            f"Vehicle plate: {plate}",
            f"Tires flagged: {len(tires)}",
            f"Inspection date: {generated_at}",
            "",
        ]
        for tire in tires:
            lines.append(f"Tire {tire.tire_index} - {tire.position}: "
                         f"{', '.join(_format_depth(d) for d in tire.depths)}")
            for position, url in enumerate(tire.images):
                lines.append(f"  {slot_for_image(url, position).label}: {url}")
        lines += ["", f"Alert rule: at least one depth <= {self.threshold:g} mm."]
        msg.set_content("\n".join(lines))

        rows = "".join(
            "<tr>"
            f'<td style="padding: 8px; border: 1px solid #ddd; font-weight: bold;">'
            f"Tire {tire.tire_index} - {html.escape(tire.position)}</td>"
            f'<td style="padding: 8px; border: 1px solid #ddd;">'
            f"{', '.join(_format_depth(d) for d in tire.depths)}</td>"
            f'<td style="padding: 8px; border: 1px solid #ddd;">{_image_links_html(tire.images)}</td>'
            "</tr>"
            for tire in tires
        )
        body = f"""
<div style="font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto;">
  <h2 style="color: #dc3545; border-bottom: 2px solid #dc3545; padding-bottom: 10px;">Low Tread Depth Alert</h2>
  <p><strong>Vehicle plate:</strong> {html.escape(plate)}</p>
  <p><strong>Tires flagged:</strong> {len(tires)}</p>
  <p><strong>Inspection date:</strong> {generated_at}</p>
  <table style="border-collapse: collapse; width: 100%; margin-top: 20px;">
    <thead>
      <tr style="background: #dc3545; color: white;">
        <th style="padding: 12px; border: 1px solid #ddd; text-align: left;">Tire and position</th>
        <th style="padding: 12px; border: 1px solid #ddd; text-align: left;">Depths</th>
        <th style="padding: 12px; border: 1px solid #ddd; text-align: left;">Images</th>
      </tr>
    </thead>
    <tbody>{rows}</tbody>
  </table>
  <p style="color: #856404;">Alert rule: at least one depth is &le; {self.threshold:g} mm.</p>
</div>
"""
        msg.add_alternative(body, subtype="html")
        return msg

    def _send(self, msg: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as smtp:
                smtp.starttls()
                smtp.login(self.email_user, self.email_pass)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP dispatch failed: {e}") from e

    async def notify(self, plate: str, records: List[TireInspection]) -> bool:
        """
        Send a low-depth alert for one submission

        Args:
            plate: Vehicle plate
            records: Persisted records of the submission

        Returns:
            True if an email was sent, False if skipped or failed
        """
        tires = flagged_tires(records, self.threshold)
        if not tires:
            logger.debug(f"No low-depth tires for plate {plate}; no alert")
            return False

        if not self.configured:
            logger.warning("Email credentials not configured. Skipping low depth notification.")
            return False

        try:
            msg = self.build_message(plate, tires)
            # smtplib is blocking; keep it off the event loop
            await asyncio.to_thread(self._send, msg)
        except NotificationError as e:
            logger.error(f"Failed to send low depth email for plate {plate}: {e}")
            return False

        logger.info(f"Low depth alert email sent for plate {plate} ({len(tires)} tire(s))")
        return True
