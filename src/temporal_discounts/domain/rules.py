"""
Discount rule table and chain builder.

A rule pairs a condition with a factory for the discount it grants, plus a
priority. Lower priorities run first; rules with equal priority run in the
order they were declared (Python's sort is stable, and we rely on that).

The table lives in a `RuleRegistry` value that the calculator owns, so tests
and callers can swap the policy without touching module state. Registries
are immutable: `with_rule()` returns a new one, so a calculation in flight
always sees a consistent table.
"""

from dataclasses import dataclass
from decimal import Decimal
from operator import attrgetter
from typing import Any, Callable, Iterable, Iterator, Mapping

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from temporal_discounts.domain.audit import AuditTrail, TraceKind
from temporal_discounts.domain.discounts import (
    BulkPurchaseDiscount,
    CompositeDiscount,
    Discount,
    DiscountSpec,
    FirstTimeCustomerDiscount,
    LoyaltyDiscount,
    SeasonalDiscount,
)
from temporal_discounts.domain.exceptions import RuleConfigurationError
from temporal_discounts.domain.models import CustomerType, DiscountContext


class RuleSpec(BaseModel):
    """Declarative rule entry, as loaded from configuration.

    Example:
        {"name": "Summer Sale", "priority": 6,
         "discount": {"kind": "seasonal", "rate": "0.05",
                      "season_name": "Summer", "months": [6, 7, 8]}}
    """

    name: str = Field(..., min_length=1)
    priority: int
    discount: DiscountSpec


@dataclass(frozen=True)
class DiscountRule:
    name: str
    priority: int
    condition: Callable[[DiscountContext], bool]
    factory: Callable[[], Discount]

    @classmethod
    def from_spec(cls, spec: RuleSpec) -> "DiscountRule":
        """Build a rule whose condition is the discount's own applicability check."""
        discount = spec.discount
        return cls(
            name=spec.name,
            priority=spec.priority,
            condition=discount.is_applicable,
            factory=discount.model_copy,
        )


_RULE_SPECS = TypeAdapter(list[RuleSpec])


class RuleRegistry:
    """Immutable, ordered collection of discount rules."""

    def __init__(self, rules: Iterable[DiscountRule] = ()) -> None:
        self._rules: tuple[DiscountRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[DiscountRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[DiscountRule]:
        return iter(self._rules)

    def ordered(self) -> list[DiscountRule]:
        """Rules by ascending priority; ties keep declaration order."""
        return sorted(self._rules, key=attrgetter("priority"))

    def with_rule(self, rule: DiscountRule) -> "RuleRegistry":
        return RuleRegistry(self._rules + (rule,))

    @classmethod
    def from_specs(cls, specs: Iterable[RuleSpec]) -> "RuleRegistry":
        return cls(DiscountRule.from_spec(spec) for spec in specs)

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, Any]]) -> "RuleRegistry":
        """Validate raw rule entries (e.g. parsed JSON) into a registry.

        Raises:
            RuleConfigurationError: if any entry is malformed.
        """
        try:
            specs = _RULE_SPECS.validate_python(list(entries))
        except ValidationError as e:
            raise RuleConfigurationError(f"Invalid discount rule configuration: {e}") from e
        return cls.from_specs(specs)


DEFAULT_RULE_SPECS: tuple[RuleSpec, ...] = (
    RuleSpec(
        name="First Time Customer Welcome",
        priority=1,
        discount=FirstTimeCustomerDiscount(rate=Decimal("0.15")),
    ),
    RuleSpec(
        name="VIP Loyalty Program",
        priority=2,
        discount=LoyaltyDiscount(rate=Decimal("0.20"), tier=CustomerType.VIP),
    ),
    RuleSpec(
        name="Premium Member Benefits",
        priority=3,
        discount=LoyaltyDiscount(rate=Decimal("0.10"), tier=CustomerType.PREMIUM),
    ),
    RuleSpec(
        name="Bulk Purchase Incentive",
        priority=4,
        discount=BulkPurchaseDiscount(min_quantity=10, rate=Decimal("0.08")),
    ),
    RuleSpec(
        name="Holiday Season Sale",
        priority=5,
        discount=SeasonalDiscount(rate=Decimal("0.12"), season_name="Holiday", months=(12,)),
    ),
    RuleSpec(
        name="Summer Sale",
        priority=6,
        discount=SeasonalDiscount(rate=Decimal("0.05"), season_name="Summer", months=(6, 7, 8)),
    ),
)


def default_registry() -> RuleRegistry:
    return RuleRegistry.from_specs(DEFAULT_RULE_SPECS)


def build_chain(
    context: DiscountContext,
    registry: RuleRegistry,
    trail: AuditTrail,
) -> CompositeDiscount | None:
    """Instantiate the discounts of every matching rule, in priority order.

    Returns None when no rule matches; callers treat that as "no applicable
    policy" and skip the arithmetic entirely.
    """
    discounts: list[Discount] = []
    for rule in registry.ordered():
        if not rule.condition(context):
            continue
        discount = rule.factory()
        discounts.append(discount)
        trail.emit(
            TraceKind.RULE_MATCHED,
            f"Rule matched: {rule.name}",
            rule=rule.name,
            priority=rule.priority,
            discount=discount.name,
        )
    return CompositeDiscount(discounts) if discounts else None
