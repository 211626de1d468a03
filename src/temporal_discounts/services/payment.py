"""
Payment service facade.

Part of the **service layer** that encapsulates external operations behind
clean interfaces. In a real system this would call a payment provider.
Here it simulates the call with a short sleep.

Activities delegate to services (not the other way around), keeping the
Temporal-specific code separate from business logic.
"""

import asyncio
import logging

from temporal_discounts.domain.models import ChargeInput

logger = logging.getLogger(__name__)


class PaymentService:
    """Simulates charging a customer the discounted total.

    A zero total (fully discounted order) is accepted without a provider call.
    """

    def __init__(self, latency: float = 0.5) -> None:
        self.latency = latency

    async def charge(self, input: ChargeInput) -> bool:
        if input.amount_cents == 0:
            logger.info("Nothing to charge for order %s", input.order_id)
            return True
        logger.info("Charging order %s for %d cents", input.order_id, input.amount_cents)
        await asyncio.sleep(self.latency)  # Simulate network latency
        logger.info("Charge successful for order %s", input.order_id)
        return True
