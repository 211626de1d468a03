"""
Domain models for the discount engine and the checkout workflow.

All models use Pydantic v2 BaseModel for validation, serialization and
deserialization. The checkout workflow ships its inputs and outputs across
Temporal as JSON payloads, so everything here must round-trip cleanly through
the pydantic_data_converter configured on both the client and the worker.

Money inside the engine is `Decimal` and is never rounded mid-calculation.
Money crossing into the payment layer is integer cents.

Enums inherit from (str, Enum) so they serialize as plain strings in JSON
(e.g. "VIP" instead of {"value": "VIP"}).
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

ZERO = Decimal("0")
CENT = Decimal("0.01")


class CustomerType(str, Enum):
    """Customer classification used by the loyalty rules.

    Unrecognised customer input maps to UNKNOWN (see DiscountContext),
    which no loyalty rule matches.
    """

    REGULAR = "Regular"
    PREMIUM = "Premium"
    VIP = "VIP"
    UNKNOWN = "Unknown"  # Unrecognised input; never a valid loyalty tier


# ── Engine input / output ────────────────────────────────────────────


class DiscountContext(BaseModel):
    """Snapshot of the purchase and customer facts for one pricing decision.

    Frozen: the engine reads it, never writes it. Callers build a fresh one
    per request.
    """

    model_config = ConfigDict(frozen=True)

    original_price: Decimal = Field(..., ge=0)          # Price before any discount
    customer_type: CustomerType = CustomerType.REGULAR  # Drives the loyalty rules
    purchase_quantity: int = Field(..., ge=0)           # Drives the bulk rule
    purchase_date: date                                 # Drives the seasonal rules
    is_first_time_customer: bool = False
    product_category: str | None = None                 # Not used by the built-in rules
    customer_lifetime_value: Decimal | None = None      # Not used by the built-in rules

    @field_validator("customer_type", mode="before")
    @classmethod
    def _coerce_customer_type(cls, value: object) -> object:
        if isinstance(value, str) and not isinstance(value, CustomerType):
            try:
                return CustomerType(value)
            except ValueError:
                return CustomerType.UNKNOWN
        return value


class DiscountResult(BaseModel):
    """Outcome of applying one discount (or a whole chain) to a price.

    `final_price + discount_amount` always equals the price the discount was
    applied to. `applied_discounts` keeps application order for auditing.
    """

    model_config = ConfigDict(frozen=True)

    discount_amount: Decimal = Field(ZERO, ge=0)                # Total taken off, unrounded
    final_price: Decimal = Field(..., ge=0)                     # Never negative (amounts are capped)
    applied_discounts: list[str] = Field(default_factory=list)  # Names, in application order
    summary: str = ""                                           # Human-readable one-liner

    @classmethod
    def no_discount(cls, price: Decimal, summary: str = "No discounts applied") -> "DiscountResult":
        return cls(discount_amount=ZERO, final_price=price, applied_discounts=[], summary=summary)

    @property
    def original_price(self) -> Decimal:
        return self.final_price + self.discount_amount

    def rounded(self, places: int = 2) -> "DiscountResult":
        """Return a copy with the final price quantized (ROUND_HALF_UP).

        The discount amount is re-derived from the rounded final price so the
        two still add up to the original price exactly.
        """
        quantum = Decimal(1).scaleb(-places)
        original = self.original_price
        final_price = self.final_price.quantize(quantum, rounding=ROUND_HALF_UP)
        return self.model_copy(
            update={"final_price": final_price, "discount_amount": original - final_price}
        )


class InvalidDiscountContext(BaseModel):
    """Explicit validation failure returned instead of a DiscountResult."""

    model_config = ConfigDict(frozen=True)

    errors: list[str] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        return "Invalid discount context: " + "; ".join(self.errors)


# ── Checkout workflow input / output ─────────────────────────────────


class CheckoutStatus(str, Enum):
    """Terminal status of a checkout workflow."""

    COMPLETED = "COMPLETED"   # Charged and receipt sent
    REJECTED = "REJECTED"     # Discount context failed validation, nothing charged
    FAILED = "FAILED"         # An activity failed after exhausting retries
    CANCELLED = "CANCELLED"   # A cancel signal was received before completion


class CheckoutRequest(BaseModel):
    """Input to the checkout workflow.

    `context` stays a plain dict on the wire so that invalid input reaches
    the calculator and comes back as a REJECTED result instead of failing
    payload decoding.
    """

    order_id: str = Field(..., min_length=1)  # Unique identifier, also used in the workflow ID
    context: dict                             # Raw DiscountContext fields


class CheckoutState(BaseModel):
    """Mutable state tracked inside the workflow, exposed via `get_status`."""

    charged: bool = False       # True after charge_customer activity succeeds
    receipt_sent: bool = False  # True after send_receipt activity succeeds
    cancelled: bool = False     # True when cancel_order signal is received


class CheckoutResult(BaseModel):
    """Final result returned by the workflow to the client."""

    order_id: str
    status: CheckoutStatus
    charged: bool = False
    receipt_sent: bool = False
    amount_cents: int = 0  # Discounted total actually charged, in cents
    applied_discounts: list[str] = Field(default_factory=list)
    summary: str = ""


def to_cents(amount: Decimal) -> int:
    """Convert a Decimal money amount to integer cents (ROUND_HALF_UP)."""
    return int((amount / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ── Activity payload models ──────────────────────────────────────────


class ChargeInput(BaseModel):
    """Payload for the charge_customer activity."""

    order_id: str
    amount_cents: int = Field(..., ge=0)  # Must be non-negative


class ReceiptInput(BaseModel):
    """Payload for the send_receipt activity."""

    order_id: str
    amount_cents: int = Field(..., ge=0)
    applied_discounts: list[str] = Field(default_factory=list)
    summary: str = ""
