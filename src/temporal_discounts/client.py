"""
CLI client — starts a checkout workflow and optionally queries / cancels it.

Usage:
    # VIP customer, 15 items, holiday season:
    python -m temporal_discounts.client --order-id 101 --price 1000 \
        --customer-type VIP --quantity 15 --date 2024-12-15

    # First-time customer, query the workflow once after starting:
    python -m temporal_discounts.client --order-id 102 --price 250 \
        --quantity 3 --date 2024-07-10 --first-time --query

    # Cancel the checkout after half a second:
    python -m temporal_discounts.client --order-id 103 --price 150 \
        --customer-type Premium --quantity 2 --date 2024-07-20 --cancel-after 0.5
"""

import argparse
import asyncio
import logging

# Client is the Temporal SDK's entry point for interacting with the server.
# It can start workflows, send signals, run queries, and fetch results.
from temporalio.client import Client

# Must match the data_converter used by the worker — see worker.py.
from temporalio.contrib.pydantic import pydantic_data_converter

from temporal_discounts.config import LOG_FORMAT, TASK_QUEUE, TEMPORAL_ADDRESS
from temporal_discounts.domain.models import CheckoutRequest, CustomerType
from temporal_discounts.workflows import CheckoutWorkflow


def build_request(args: argparse.Namespace) -> CheckoutRequest:
    """Turn parsed CLI flags into a workflow input.

    Values are passed through as strings; the discount calculator inside the
    workflow validates them.
    """
    context = {
        "original_price": args.price,
        "customer_type": args.customer_type,
        "purchase_quantity": args.quantity,
        "purchase_date": args.date,
        "is_first_time_customer": args.first_time,
    }
    if args.category is not None:
        context["product_category"] = args.category
    if args.lifetime_value is not None:
        context["customer_lifetime_value"] = args.lifetime_value
    return CheckoutRequest(order_id=args.order_id, context=context)


async def run_client(args: argparse.Namespace) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)

    client = await Client.connect(TEMPORAL_ADDRESS, data_converter=pydantic_data_converter)

    req = build_request(args)
    workflow_id = f"checkout-{req.order_id}"

    logger.info("Starting workflow %s", workflow_id)
    # start_workflow sends an execution request to the server, which enqueues
    # a task for a worker polling TASK_QUEUE. `handle` is a lightweight
    # reference to the running workflow.
    handle = await client.start_workflow(
        CheckoutWorkflow.run,   # type-safe reference to the workflow's run method
        req,                    # workflow input (serialized via pydantic_data_converter)
        id=workflow_id,         # unique workflow ID (prevents duplicate checkouts)
        task_queue=TASK_QUEUE,  # routes to workers polling this queue
    )

    # Query: read-only inspection of workflow state, including the discount
    # trace. Does NOT affect execution.
    if args.query:
        status = await handle.query(CheckoutWorkflow.get_status)
        logger.info("Query result: %s", status)

    # Signal: async message to the running workflow. cancel_order sets the
    # `cancelled` flag, checked before each activity.
    if args.cancel_after is not None:
        await asyncio.sleep(args.cancel_after)
        logger.info("Sending cancel signal to %s", workflow_id)
        await handle.signal(CheckoutWorkflow.cancel_order)

    # Block until the workflow completes; the CheckoutResult comes back as a
    # Pydantic model.
    result = await handle.result()
    print(result.model_dump_json(indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check out a discounted order via Temporal")
    parser.add_argument("--order-id", required=True, help="Unique order identifier")
    parser.add_argument("--price", required=True, help="Original price, e.g. 1000 or 249.99")
    parser.add_argument(
        "--customer-type",
        default=CustomerType.REGULAR.value,
        choices=[t.value for t in CustomerType if t is not CustomerType.UNKNOWN],
        help="Customer classification",
    )
    parser.add_argument("--quantity", type=int, required=True, help="Number of items purchased")
    parser.add_argument("--date", required=True, help="Purchase date (YYYY-MM-DD)")
    parser.add_argument("--first-time", action="store_true", help="Customer is buying for the first time")
    parser.add_argument("--category", default=None, help="Product category")
    parser.add_argument("--lifetime-value", default=None, help="Customer lifetime value")
    parser.add_argument("--query", action="store_true", help="Query workflow status once after starting")
    parser.add_argument("--cancel-after", type=float, default=None, help="Seconds to wait before sending cancel signal")
    return parser


def main() -> None:
    asyncio.run(run_client(build_parser().parse_args()))


if __name__ == "__main__":
    main()
