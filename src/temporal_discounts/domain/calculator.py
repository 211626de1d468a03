"""
Discount calculator facade.

`DiscountCalculator.calculate_discount()` is the engine's single entry
point: validate the context, build the discount chain from the rule
registry, and apply it to the original price.

It never raises for business outcomes. "No rule matched" is a normal
zero-discount result, and an invalid context comes back as an
`InvalidDiscountContext` value.
"""

from typing import Any, Mapping

from pydantic import ValidationError

from temporal_discounts.domain.audit import AuditTrail, TraceKind
from temporal_discounts.domain.models import DiscountContext, DiscountResult, InvalidDiscountContext
from temporal_discounts.domain.rules import RuleRegistry, build_chain, default_registry


def _format_errors(exc: ValidationError) -> list[str]:
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "context"
        errors.append(f"{field}: {err['msg']}")
    return errors


def validate_context(
    context: DiscountContext | Mapping[str, Any],
) -> DiscountContext | InvalidDiscountContext:
    """Validate caller input into a DiscountContext.

    Model instances are dumped and re-validated, so a context built with
    `model_construct()` cannot sneak a negative price past the checks.
    """
    raw = context.model_dump() if isinstance(context, DiscountContext) else context
    try:
        return DiscountContext.model_validate(raw)
    except ValidationError as e:
        return InvalidDiscountContext(errors=_format_errors(e))


class DiscountCalculator:
    """Builds and applies the discount chain for a context."""

    def __init__(self, registry: RuleRegistry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    def calculate_discount(
        self,
        context: DiscountContext | Mapping[str, Any],
        trail: AuditTrail | None = None,
    ) -> DiscountResult | InvalidDiscountContext:
        trail = trail if trail is not None else AuditTrail()

        validated = validate_context(context)
        if isinstance(validated, InvalidDiscountContext):
            trail.emit(TraceKind.INVALID_CONTEXT, validated.summary, errors=validated.errors)
            return validated
        context = validated

        trail.emit(
            TraceKind.ANALYZING,
            f"Analyzing discount eligibility: customer={context.customer_type.value} "
            f"quantity={context.purchase_quantity} amount=${context.original_price:.2f}",
            customer_type=context.customer_type.value,
            quantity=context.purchase_quantity,
            original_price=str(context.original_price),
        )

        chain = build_chain(context, self.registry, trail)
        if chain is None:
            result = DiscountResult.no_discount(context.original_price)
            trail.emit(
                TraceKind.NO_DISCOUNT,
                f"No applicable discounts found | Final price: ${result.final_price:.2f}",
                final_price=str(result.final_price),
            )
            return result

        result = chain.apply_discount(context, context.original_price)
        trail.emit(
            TraceKind.RESULT,
            f"Original price: ${context.original_price:.2f} | {result.summary} | "
            f"Applied: {', '.join(result.applied_discounts) or 'none'}",
            original_price=str(context.original_price),
            discount_amount=str(result.discount_amount),
            final_price=str(result.final_price),
            applied_discounts=list(result.applied_discounts),
        )
        return result
