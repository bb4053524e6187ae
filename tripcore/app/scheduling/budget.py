"""Budget estimate across items priced exactly or by a free-text range."""

import logging
import re
from collections.abc import Iterable
from decimal import Decimal

from tripcore.app.config import get_settings
from tripcore.app.models.budget import BudgetEstimate, PriceRange
from tripcore.app.models.itinerary import ItemKey, ItineraryItem

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"\d+(?:\.\d+)?")

# Estimate texts meaning "costs nothing"
FREE_VALUES = {"free", "0", "₱0", "php0", "none", "n/a", "-", "—"}


def parse_price_estimate(estimate: str | None) -> PriceRange | None:
    """Parse free-text pricing such as '200-400', '₱1,000 – ₱2,000' or 'Free'.

    Returns:
        PriceRange spanning the smallest and largest figure found, a zero
        range for free values, or None if the text holds no figure
    """
    if not estimate:
        return None
    raw = str(estimate).strip()
    if not raw:
        return None

    if raw.lower() in FREE_VALUES:
        return PriceRange(minimum=Decimal(0), maximum=Decimal(0))

    tokens = [Decimal(match) for match in _NUMBER.findall(raw.replace(",", ""))]
    if not tokens:
        return None
    return PriceRange(minimum=min(tokens), maximum=max(tokens))


def _normalize_unit(unit: str) -> str:
    text = unit.strip().lower()
    for prefix in ("per ", "/"):
        if text.startswith(prefix):
            text = text[len(prefix) :].strip()
    return text


def traveler_multiplier(
    unit: str | None,
    traveler_count: int,
    per_traveler_units: Iterable[str] | None = None,
) -> int:
    """Traveler count for per-person/per-entry pricing, otherwise 1."""
    if not unit:
        return 1
    units = per_traveler_units if per_traveler_units is not None else get_settings().per_traveler_units
    if _normalize_unit(unit) in {_normalize_unit(u) for u in units}:
        return max(traveler_count, 1)
    return 1


def estimate_budget(
    items: Iterable[ItineraryItem],
    traveler_count: int = 1,
    per_traveler_units: Iterable[str] | None = None,
) -> BudgetEstimate:
    """Aggregate minimum and maximum cost.

    An exact price above zero counts toward both bounds. Otherwise the price
    estimate text is parsed; the smallest figure goes to the minimum and the
    largest to the maximum. Items with neither are left out of both bounds.

    Args:
        items: Items to price
        traveler_count: Party size for per-person units
        per_traveler_units: Units charged per traveler (defaults from settings)

    Returns:
        BudgetEstimate with disclosure flags
    """
    units = list(per_traveler_units) if per_traveler_units is not None else None
    minimum = Decimal(0)
    maximum = Decimal(0)
    has_any_estimate = False
    has_ranges = False
    excluded: list[ItemKey] = []

    for item in items:
        multiplier = traveler_multiplier(item.unit, traveler_count, units)

        if item.price is not None and item.price > 0:
            minimum += item.price * multiplier
            maximum += item.price * multiplier
            continue

        parsed = parse_price_estimate(item.price_estimate)
        if parsed is None:
            if item.price_estimate:
                logger.debug(
                    "Price estimate has no figures",
                    extra={
                        "structured": {
                            "experience_id": item.experience_id,
                            "price_estimate": item.price_estimate,
                        }
                    },
                )
            excluded.append(item.key)
            continue

        minimum += parsed.minimum * multiplier
        maximum += parsed.maximum * multiplier
        has_any_estimate = True
        has_ranges = has_ranges or parsed.is_range

    return BudgetEstimate(
        minimum=minimum,
        maximum=maximum,
        traveler_count=traveler_count,
        has_any_estimate=has_any_estimate,
        has_estimated_ranges=has_ranges,
        excluded_items=excluded,
    )
