"""
Temporal activities — thin wrappers delegating to the service layer.

Activities are where side-effects happen (charging, sending receipts). The
discount calculation is NOT an activity: it is pure and deterministic, so
the workflow runs it inline.

If an activity raises, Temporal retries it according to the RetryPolicy the
workflow attaches to the call.
"""

import logging

# `activity` provides the @activity.defn decorator that registers a function
# as a Temporal activity. The function name becomes the activity type name
# on the Temporal server (e.g. "charge_customer").
from temporalio import activity

from temporal_discounts.domain.models import ChargeInput, ReceiptInput
from temporal_discounts.services.factory import ServiceFactory

logger = logging.getLogger(__name__)


@activity.defn
async def charge_customer(input: ChargeInput) -> bool:
    """Charge the discounted total via PaymentService."""
    logger.info("Activity charge_customer started for order %s", input.order_id)
    result = await ServiceFactory.get_payment_service().charge(input)
    logger.info("Activity charge_customer completed for order %s", input.order_id)
    return result


@activity.defn
async def send_receipt(input: ReceiptInput) -> bool:
    """Send a receipt listing the applied discounts via NotificationService."""
    logger.info("Activity send_receipt started for order %s", input.order_id)
    result = await ServiceFactory.get_notification_service().send_receipt(input)
    logger.info("Activity send_receipt completed for order %s", input.order_id)
    return result
