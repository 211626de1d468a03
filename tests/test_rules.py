"""
Tests for the rule registry and chain building
"""

from datetime import date
from decimal import Decimal

import pytest

from temporal_discounts.domain.audit import AuditTrail, TraceKind
from temporal_discounts.domain.discounts import FixedAmountDiscount
from temporal_discounts.domain.exceptions import DiscountEngineError, RuleConfigurationError
from temporal_discounts.domain.models import CustomerType, DiscountContext
from temporal_discounts.domain.rules import (
    DEFAULT_RULE_SPECS,
    DiscountRule,
    RuleRegistry,
    RuleSpec,
    build_chain,
    default_registry,
)


def make_context(**overrides) -> DiscountContext:
    fields = {
        "original_price": Decimal("100"),
        "purchase_quantity": 1,
        "purchase_date": date(2024, 3, 10),
    }
    fields.update(overrides)
    return DiscountContext(**fields)


def fixed_rule(name: str, priority: int) -> DiscountRule:
    return DiscountRule.from_spec(
        RuleSpec(
            name=name,
            priority=priority,
            discount=FixedAmountDiscount(amount=Decimal("1"), label=f"{name} Discount"),
        )
    )


class TestRuleRegistry:
    """Registry construction and ordering"""

    def test_default_rules(self):
        """Test the built-in rule table and its order"""
        registry = default_registry()
        assert len(registry) == len(DEFAULT_RULE_SPECS) == 6
        assert [r.name for r in registry.ordered()] == [
            "First Time Customer Welcome",
            "VIP Loyalty Program",
            "Premium Member Benefits",
            "Bulk Purchase Incentive",
            "Holiday Season Sale",
            "Summer Sale",
        ]

    def test_ordered_sorts_by_priority(self):
        """Test rules come out by ascending priority"""
        registry = RuleRegistry([fixed_rule("C", 3), fixed_rule("A", 1), fixed_rule("B", 2)])
        assert [r.name for r in registry.ordered()] == ["A", "B", "C"]
        # Declaration order is untouched.
        assert [r.name for r in registry] == ["C", "A", "B"]

    def test_equal_priority_keeps_declaration_order(self):
        """Test ties keep the order the rules were declared in"""
        forward = RuleRegistry([fixed_rule("RuleX", 5), fixed_rule("RuleY", 5)])
        backward = RuleRegistry([fixed_rule("RuleY", 5), fixed_rule("RuleX", 5)])
        assert [r.name for r in forward.ordered()] == ["RuleX", "RuleY"]
        assert [r.name for r in backward.ordered()] == ["RuleY", "RuleX"]

    def test_with_rule_returns_new_registry(self):
        """Test adding a rule leaves the original registry alone"""
        registry = RuleRegistry([fixed_rule("A", 1)])
        extended = registry.with_rule(fixed_rule("B", 2))
        assert len(registry) == 1
        assert len(extended) == 2

    def test_factory_builds_fresh_discount(self):
        """Test each factory call returns a new, equal discount"""
        rule = fixed_rule("A", 1)
        assert rule.factory() == rule.factory()
        assert rule.factory() is not rule.factory()


class TestRuleConfiguration:
    """Loading rules from raw configuration data"""

    def test_from_config(self):
        """Test raw config entries become ordered rules"""
        registry = RuleRegistry.from_config(
            [
                {
                    "name": "Spring Sale",
                    "priority": 2,
                    "discount": {"kind": "seasonal", "rate": "0.07", "season_name": "Spring", "months": [3, 4, 5]},
                },
                {
                    "name": "Gold Tier",
                    "priority": 1,
                    "discount": {"kind": "loyalty", "rate": "0.3", "tier": "VIP"},
                },
            ]
        )

        rules = registry.ordered()
        assert [r.name for r in rules] == ["Gold Tier", "Spring Sale"]
        assert rules[1].factory().name == "Spring Seasonal Discount"
        assert rules[1].condition(make_context(purchase_date=date(2024, 4, 1)))
        assert not rules[1].condition(make_context(purchase_date=date(2024, 7, 1)))

    def test_unknown_kind_raises(self):
        """Test an unknown discount kind is a configuration error"""
        with pytest.raises(RuleConfigurationError):
            RuleRegistry.from_config([{"name": "Bad", "priority": 1, "discount": {"kind": "mystery", "rate": "0.1"}}])

    def test_missing_fields_raise(self):
        """Test incomplete entries are a configuration error"""
        with pytest.raises(RuleConfigurationError) as exc_info:
            RuleRegistry.from_config([{"name": "Bad", "discount": {"kind": "first_time_customer"}}])
        assert isinstance(exc_info.value, DiscountEngineError)

    def test_mistyped_tier_raises(self):
        """Test a loyalty tier outside the known customer types is rejected"""
        with pytest.raises(RuleConfigurationError):
            RuleRegistry.from_config(
                [{"name": "Gold Tier", "priority": 1, "discount": {"kind": "loyalty", "rate": "0.3", "tier": "Gold"}}]
            )

    def test_unknown_sentinel_tier_raises(self):
        """Test the UNKNOWN sentinel is not accepted as a configured tier"""
        with pytest.raises(RuleConfigurationError):
            RuleRegistry.from_config(
                [{"name": "Catch-all", "priority": 1, "discount": {"kind": "loyalty", "rate": "0.3", "tier": "Unknown"}}]
            )

    def test_empty_config_is_empty_registry(self):
        """Test empty config gives an empty registry"""
        assert len(RuleRegistry.from_config([])) == 0


class TestBuildChain:
    """Chain construction from a registry"""

    def setup_method(self):
        self.trail = AuditTrail(sinks=[])

    def test_no_match_returns_none(self):
        """Test no matching rule gives no chain"""
        chain = build_chain(make_context(), default_registry(), self.trail)
        assert chain is None
        assert self.trail.of_kind(TraceKind.RULE_MATCHED) == []

    def test_matching_rules_in_priority_order(self):
        """Test matching rules build a chain in priority order"""
        context = make_context(customer_type=CustomerType.VIP, purchase_quantity=15, purchase_date=date(2024, 12, 15))

        chain = build_chain(context, default_registry(), self.trail)

        assert [d.name for d in chain.discounts] == [
            "VIP Loyalty Discount",
            "Bulk Purchase Discount (10+ items)",
            "Holiday Seasonal Discount",
        ]
        assert self.trail.messages() == [
            "Rule matched: VIP Loyalty Program",
            "Rule matched: Bulk Purchase Incentive",
            "Rule matched: Holiday Season Sale",
        ]
        assert self.trail.events[0].data["priority"] == 2

    def test_condition_and_discount_can_differ(self):
        """Test a hand-written condition gates the discount"""
        # Hand-written rules may gate a discount on a different condition.
        rule = DiscountRule(
            name="Electronics Promo",
            priority=1,
            condition=lambda ctx: ctx.product_category == "electronics",
            factory=lambda: FixedAmountDiscount(amount=Decimal("15"), label="Electronics $15"),
        )
        registry = RuleRegistry([rule])

        assert build_chain(make_context(product_category="books"), registry, self.trail) is None
        chain = build_chain(make_context(product_category="electronics"), registry, self.trail)
        assert len(chain) == 1
