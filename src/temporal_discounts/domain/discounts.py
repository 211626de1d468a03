"""
Discount strategies (Strategy + Composite patterns).

Every discount satisfies the `Discount` protocol: it can tell whether it
applies to a `DiscountContext`, and it can apply itself to a running price.
The running price is passed in explicitly, so a discount may be applied to a
price that has already been reduced by earlier discounts in a chain.

Leaf discounts are frozen pydantic models tagged by `kind`. Together they
form the `DiscountSpec` discriminated union, which is what the rule registry
loads from configuration. `CompositeDiscount` is the only non-leaf: it folds
its children over the running price in order.

Everything here is pure: no I/O, no clock, no randomness. The checkout
workflow runs this code directly inside the Temporal sandbox.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from functools import reduce
from typing import Annotated, Iterable, Literal, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from temporal_discounts.domain.models import ZERO, CustomerType, DiscountContext, DiscountResult

Rate = Annotated[Decimal, Field(ge=0, le=1)]
Month = Annotated[int, Field(ge=1, le=12)]


class Discount(Protocol):
    """Interface for a single pricing adjustment.

    Any class with these members satisfies the protocol (structural
    subtyping, no explicit inheritance needed).
    """

    @property
    def name(self) -> str: ...

    def is_applicable(self, context: DiscountContext) -> bool: ...

    def apply_discount(self, context: DiscountContext, current_price: Decimal) -> DiscountResult: ...


def discount_result(current_price: Decimal, amount: Decimal, name: str) -> DiscountResult:
    """Build a single-discount result, capping the amount at the running price."""
    amount = min(max(amount, ZERO), current_price)
    return DiscountResult(
        discount_amount=amount,
        final_price=current_price - amount,
        applied_discounts=[name],
        summary=f"{name}: ${amount:.2f} discount applied",
    )


def not_eligible(current_price: Decimal, name: str) -> DiscountResult:
    label = f"{name} (not eligible)"
    return DiscountResult(
        discount_amount=ZERO, final_price=current_price, applied_discounts=[label], summary=label
    )


class _LeafDiscount(BaseModel, ABC):
    """Shared apply logic for leaf discounts.

    Subclasses provide `name`, `is_applicable` and `amount_for`.
    """

    model_config = ConfigDict(frozen=True)

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def is_applicable(self, context: DiscountContext) -> bool: ...

    @abstractmethod
    def amount_for(self, current_price: Decimal) -> Decimal: ...

    def apply_discount(self, context: DiscountContext, current_price: Decimal) -> DiscountResult:
        if not self.is_applicable(context):
            return not_eligible(current_price, self.name)
        return discount_result(current_price, self.amount_for(current_price), self.name)


class _RateDiscount(_LeafDiscount):
    rate: Rate

    def amount_for(self, current_price: Decimal) -> Decimal:
        return current_price * self.rate


class FirstTimeCustomerDiscount(_RateDiscount):
    kind: Literal["first_time_customer"] = "first_time_customer"

    @property
    def name(self) -> str:
        return "First Time Customer Discount"

    def is_applicable(self, context: DiscountContext) -> bool:
        return context.is_first_time_customer


class LoyaltyDiscount(_RateDiscount):
    """Rate-based discount for one customer tier (exact match)."""

    kind: Literal["loyalty"] = "loyalty"
    tier: CustomerType

    @field_validator("tier")
    @classmethod
    def _known_tier(cls, tier: CustomerType) -> CustomerType:
        if tier is CustomerType.UNKNOWN:
            raise ValueError("loyalty tier must be a known customer type")
        return tier

    @property
    def name(self) -> str:
        return f"{self.tier.value} Loyalty Discount"

    def is_applicable(self, context: DiscountContext) -> bool:
        return context.customer_type == self.tier


class BulkPurchaseDiscount(_RateDiscount):
    kind: Literal["bulk_purchase"] = "bulk_purchase"
    min_quantity: int = Field(..., ge=0)

    @property
    def name(self) -> str:
        return f"Bulk Purchase Discount ({self.min_quantity}+ items)"

    def is_applicable(self, context: DiscountContext) -> bool:
        return context.purchase_quantity >= self.min_quantity


class SeasonalDiscount(_RateDiscount):
    """Rate-based discount for purchases made in the given calendar months."""

    kind: Literal["seasonal"] = "seasonal"
    season_name: str = Field(..., min_length=1)
    months: tuple[Month, ...] = Field(..., min_length=1)

    @property
    def name(self) -> str:
        return f"{self.season_name} Seasonal Discount"

    def is_applicable(self, context: DiscountContext) -> bool:
        return context.purchase_date.month in self.months


class FixedAmountDiscount(_LeafDiscount):
    """Subtracts a constant amount, capped at the running price."""

    kind: Literal["fixed_amount"] = "fixed_amount"
    amount: Decimal = Field(..., ge=0)
    label: str = Field(..., min_length=1)
    min_quantity: int = Field(0, ge=0)

    @property
    def name(self) -> str:
        return self.label

    def is_applicable(self, context: DiscountContext) -> bool:
        return context.purchase_quantity >= self.min_quantity

    def amount_for(self, current_price: Decimal) -> Decimal:
        return self.amount


DiscountSpec = Annotated[
    Union[
        FirstTimeCustomerDiscount,
        LoyaltyDiscount,
        BulkPurchaseDiscount,
        SeasonalDiscount,
        FixedAmountDiscount,
    ],
    Field(discriminator="kind"),
]


class CompositeDiscount:
    """Applies an ordered list of discounts one after another.

    Each discount sees the price left over by the previous one, so rates
    compound on the remaining balance: 20% then 8% off 1000 is
    1000 * 0.80 * 0.92 = 736, not 1000 * (1 - 0.28) = 720.
    """

    name = "Combined Discounts"

    def __init__(self, discounts: Iterable[Discount]) -> None:
        self.discounts: tuple[Discount, ...] = tuple(discounts)

    def __len__(self) -> int:
        return len(self.discounts)

    def is_applicable(self, context: DiscountContext) -> bool:
        return any(d.is_applicable(context) for d in self.discounts)

    def apply_discount(self, context: DiscountContext, current_price: Decimal) -> DiscountResult:
        def step(acc: tuple[Decimal, Decimal, tuple[str, ...]], discount: Discount):
            working_price, total, names = acc
            result = discount.apply_discount(context, working_price)
            if result.discount_amount <= 0:
                return acc
            return result.final_price, total + result.discount_amount, names + tuple(result.applied_discounts)

        if not self.is_applicable(context):
            return not_eligible(current_price, self.name)

        applicable = (d for d in self.discounts if d.is_applicable(context))
        final_price, total, names = reduce(step, applicable, (current_price, ZERO, ()))

        if names:
            summary = f"Total discount: ${total:.2f} | Final price: ${final_price:.2f}"
        else:
            summary = "No discounts applied"
        return DiscountResult(
            discount_amount=total,
            final_price=final_price,
            applied_discounts=list(names),
            summary=summary,
        )
