"""
Temporal workflow — CheckoutWorkflow.

A Temporal **workflow** is a durable, fault-tolerant function that orchestrates
the execution of activities. The Temporal server persists its state at every
`await` point, so if the worker crashes the workflow automatically resumes
from the last checkpoint.

This one prices an order with the discount engine, then charges the customer
and sends a receipt. The discount calculation is pure, so it runs directly in
the workflow; only charging and notifying go through activities.

Key constraints inside a workflow:
  - Must be **deterministic**: no I/O, no randomness, no system clock.
  - Use `workflow.execute_activity(...)` to dispatch work to activities.
  - Use `workflow.logger` instead of the stdlib `logging` module. Engine
    trace events are routed there through an AuditTrail sink.
"""

from datetime import timedelta

# `workflow` is the core Temporal SDK module for defining workflows: the
# @workflow.defn / run / signal / query decorators plus execute_activity and
# a replay-safe logger.
from temporalio import workflow

# RetryPolicy configures how Temporal retries failed activity executions.
# It is attached per-activity when calling `workflow.execute_activity(...)`.
from temporalio.common import RetryPolicy

# ── Sandbox-safe imports ─────────────────────────────────────────────
# Temporal runs workflows inside a restricted sandbox that intercepts imports
# to enforce determinism. Pydantic and the discount engine use constructs the
# sandbox would flag, so they are passed through. None of them has
# side-effects at import time, and the engine itself is pure.
with workflow.unsafe.imports_passed_through():
    from temporal_discounts.activities import charge_customer, send_receipt
    from temporal_discounts.domain.audit import AuditTrail, TraceEvent
    from temporal_discounts.domain.calculator import DiscountCalculator
    from temporal_discounts.domain.models import (
        ChargeInput,
        CheckoutRequest,
        CheckoutResult,
        CheckoutState,
        CheckoutStatus,
        DiscountResult,
        InvalidDiscountContext,
        ReceiptInput,
        to_cents,
    )


# @workflow.defn — marks this class as a Temporal workflow definition.
@workflow.defn
class CheckoutWorkflow:
    """Orchestrates a discounted checkout.

    Execution flow:
        1. Calculate discount (deterministic, in-workflow)
        2. charge_customer activity  → PaymentService
        3. send_receipt activity     → NotificationService

    Supports:
        - **Signal** `cancel_order`: external callers can cancel mid-flight.
        - **Query** `get_status`: external callers can inspect state, including
          the discount trace, without affecting execution.
    """

    def __init__(self) -> None:
        # Workflow instance state — Temporal persists this across replays.
        self.state = CheckoutState()
        # The calculator owns the rule registry; inject a different one to
        # change the discount policy.
        self.calculator = DiscountCalculator()
        self.trail = AuditTrail(sinks=[self._log_trace])
        self.request: CheckoutRequest | None = None
        self.discount: DiscountResult | None = None
        self.amount_cents: int | None = None

    @staticmethod
    def _log_trace(event: TraceEvent) -> None:
        workflow.logger.info("[%s] %s", event.kind.value, event.message)

    # ── Signal ────────────────────────────────────────────────────
    # A **signal** is an async message sent to a running workflow. It mutates
    # workflow state but returns nothing to the sender. The workflow checks
    # the `cancelled` flag before each activity.

    @workflow.signal
    async def cancel_order(self) -> None:
        self.state.cancelled = True

    # ── Query ─────────────────────────────────────────────────────
    # A **query** is a synchronous, read-only inspection of workflow state.
    # It MUST NOT mutate state or perform side-effects.

    @workflow.query
    def get_status(self) -> dict:
        return {
            "order_id": self.request.order_id if self.request else None,
            "cancelled": self.state.cancelled,
            "charged": self.state.charged,
            "receipt_sent": self.state.receipt_sent,
            "amount_cents": self.amount_cents,
            "applied_discounts": list(self.discount.applied_discounts) if self.discount else [],
            "trace": self.trail.messages(),
        }

    # ── Helpers ──────────────────────────────────────────────────

    def _result(self, status: CheckoutStatus, summary: str | None = None) -> CheckoutResult:
        """Build a CheckoutResult snapshot from current state."""
        return CheckoutResult(
            order_id=self.request.order_id if self.request else "",
            status=status,
            charged=self.state.charged,
            receipt_sent=self.state.receipt_sent,
            amount_cents=self.amount_cents or 0,
            applied_discounts=list(self.discount.applied_discounts) if self.discount else [],
            summary=summary if summary is not None else (self.discount.summary if self.discount else ""),
        )

    # ── Run (main workflow logic) ────────────────────────────────
    # @workflow.run — marks the entry-point method. Its signature defines the
    # workflow's input type and return type.

    @workflow.run
    async def run(self, req: CheckoutRequest) -> CheckoutResult:
        self.request = req

        # Discounting is deterministic (no I/O), so it runs directly in the
        # workflow — no need for an activity. Invalid input is a value, not
        # an exception, and ends the checkout before anything is charged.
        outcome = self.calculator.calculate_discount(req.context, trail=self.trail)
        if isinstance(outcome, InvalidDiscountContext):
            workflow.logger.warning("Order %s rejected: %s", req.order_id, outcome.summary)
            return self._result(CheckoutStatus.REJECTED, summary=outcome.summary)

        # Charge the rounded total; rounding keeps final + discount exact.
        self.discount = outcome.rounded()
        self.amount_cents = to_cents(self.discount.final_price)

        # ── Retry policy ─────────────────────────────────────────
        # Failed activities are retried up to 5 times with exponential
        # backoff: wait 1s → 2s → 4s → 8s between attempts.
        retry_policy = RetryPolicy(
            maximum_attempts=5,
            initial_interval=timedelta(seconds=1),
            backoff_coefficient=2.0,
        )

        # ── Activity options ─────────────────────────────────────
        # start_to_close_timeout: max wall-clock time for a single attempt.
        activity_opts = {
            "start_to_close_timeout": timedelta(seconds=10),
            "retry_policy": retry_policy,
        }

        workflow.logger.info(
            "Starting checkout %s for %d cents (%d discounts applied)",
            req.order_id,
            self.amount_cents,
            len(self.discount.applied_discounts),
        )

        try:
            # Step 1: Charge the customer the discounted total.
            # Check the cancellation flag before each activity.
            if self.state.cancelled:
                return self._result(CheckoutStatus.CANCELLED)
            await workflow.execute_activity(
                charge_customer,
                ChargeInput(order_id=req.order_id, amount_cents=self.amount_cents),
                **activity_opts,
            )
            self.state.charged = True

            # Step 2: Send a receipt listing the applied discounts.
            if self.state.cancelled:
                return self._result(CheckoutStatus.CANCELLED)
            await workflow.execute_activity(
                send_receipt,
                ReceiptInput(
                    order_id=req.order_id,
                    amount_cents=self.amount_cents,
                    applied_discounts=list(self.discount.applied_discounts),
                    summary=self.discount.summary,
                ),
                **activity_opts,
            )
            self.state.receipt_sent = True

        except Exception:
            # An activity exhausted its retries. Complete with FAILED rather
            # than letting the server mark the workflow execution as failed.
            workflow.logger.exception("Checkout %s failed", req.order_id)
            return self._result(CheckoutStatus.FAILED)

        workflow.logger.info("Checkout %s completed", req.order_id)
        return self._result(CheckoutStatus.COMPLETED)
