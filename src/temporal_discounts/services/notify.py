"""
Notification service facade.

Simulates sending an order receipt listing the discounts that were applied.
In production this would integrate with an email or push provider.
"""

import asyncio
import logging

from temporal_discounts.domain.models import ReceiptInput

logger = logging.getLogger(__name__)


class NotificationService:
    """Simulates sending a receipt to the customer."""

    def __init__(self, latency: float = 0.3) -> None:
        self.latency = latency

    def render_receipt(self, input: ReceiptInput) -> str:
        lines = [f"Order {input.order_id}: charged {input.amount_cents / 100:.2f}"]
        lines.extend(f"  - {name}" for name in input.applied_discounts)
        if input.summary:
            lines.append(input.summary)
        return "\n".join(lines)

    async def send_receipt(self, input: ReceiptInput) -> bool:
        logger.info("Sending receipt for order %s", input.order_id)
        await asyncio.sleep(self.latency)  # Simulate network latency
        logger.info("Receipt sent for order %s:\n%s", input.order_id, self.render_receipt(input))
        return True
