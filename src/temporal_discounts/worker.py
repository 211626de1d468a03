"""
Temporal worker — polls the checkout task queue.

Registers CheckoutWorkflow and the charge/receipt activities. Multiple
workers can poll the same queue for horizontal scaling.

Run with:
    python -m temporal_discounts.worker
"""

import asyncio
import logging

# Client connects to the Temporal server (TEMPORAL_ADDRESS in config.py).
from temporalio.client import Client

# pydantic_data_converter lets the SDK serialize Pydantic v2 models passed as
# workflow and activity inputs and results.
# IMPORTANT: The same data_converter must be used on both the worker AND the client.
from temporalio.contrib.pydantic import pydantic_data_converter

# Worker is the main event loop that polls the Temporal server for tasks.
from temporalio.worker import Worker

from temporal_discounts.activities import charge_customer, send_receipt
from temporal_discounts.config import LOG_FORMAT, TASK_QUEUE, TEMPORAL_ADDRESS
from temporal_discounts.workflows import CheckoutWorkflow


async def run_worker() -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)

    client = await Client.connect(TEMPORAL_ADDRESS, data_converter=pydantic_data_converter)
    logger.info("Connected to Temporal at %s — starting worker on queue %r", TEMPORAL_ADDRESS, TASK_QUEUE)

    # The worker polls the task queue, runs CheckoutWorkflow when an execution
    # starts, and runs the activities the workflow dispatches.
    worker = Worker(
        client,
        task_queue=TASK_QUEUE,
        workflows=[CheckoutWorkflow],
        activities=[charge_customer, send_receipt],
    )
    # worker.run() blocks until the worker is shut down (e.g., via Ctrl+C).
    await worker.run()


def main() -> None:
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
