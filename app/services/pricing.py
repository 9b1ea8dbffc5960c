"""Website build pricing engine.

``calculate_quote`` is a pure function of the request and the price table.
Amounts are computed exactly with ``Decimal`` and rounded ROUND_HALF_UP to
whole currency units. Rounding is applied to cumulative checkpoints
(base, +pages, +features, *design, *timeline, *location) and every reported
line is the difference between two consecutive rounded checkpoints, so the
lines always add up to the total.
"""
import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from app.core.enums import DesignLevel, Location, SiteType, Timeline
from app.core.exceptions import InvalidEnumeration, InvalidFeatures, InvalidQuantity
from app.core.price_table import PriceTable, get_price_table
from app.schemas.quote import MAX_PAGE_COUNT, QuoteBreakdown, QuoteRequest

logger = logging.getLogger(__name__)

ONE = Decimal(1)


def round_currency(amount: Decimal) -> int:
    return int(Decimal(amount).quantize(ONE, rounding=ROUND_HALF_UP))


def quote_range(total: int, band: Decimal) -> tuple[int, int]:
    """Cosmetic low/high display range around ``total``."""
    return round_currency(total * (ONE - band)), round_currency(total * (ONE + band))


def _enum_value(enum_cls, value, field: str, section) -> str:
    try:
        member = enum_cls(value)
    except (ValueError, TypeError):
        raise InvalidEnumeration(field, value, [m.value for m in enum_cls])
    if member.value not in section:
        raise InvalidEnumeration(field, value, section.keys())
    return member.value


def _page_count(value) -> int:
    if isinstance(value, bool):
        raise InvalidQuantity("page_count", value, MAX_PAGE_COUNT)
    if isinstance(value, int):
        count = value
    elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
        count = int(value)
    else:
        raise InvalidQuantity("page_count", value, MAX_PAGE_COUNT)
    if not 1 <= count <= MAX_PAGE_COUNT:
        raise InvalidQuantity("page_count", value, MAX_PAGE_COUNT)
    return count


def _features_cost(features: Optional[Iterable[str]], table: PriceTable) -> Decimal:
    if isinstance(features, (str, bytes)):
        raise InvalidFeatures("features", features)
    cost = Decimal(0)
    for feature in set(features or ()):
        price = table.feature_price_by_key.get(feature)
        if price is None:
            logger.debug(f"Unknown feature tag {feature!r} priced at 0")
            continue
        cost += price
    return cost


def calculate_quote(req: QuoteRequest, table: Optional[PriceTable] = None) -> QuoteBreakdown:
    table = table or get_price_table()

    site_type = _enum_value(SiteType, req.site_type, "site_type", table.base_price_by_site_type)
    design_level = _enum_value(DesignLevel, req.design_level, "design_level", table.design_multiplier_by_level)
    timeline = _enum_value(Timeline, req.timeline, "timeline", table.timeline_multiplier_by_urgency)
    location = None
    if req.location is not None:
        location = _enum_value(Location, req.location, "location", table.location_multiplier_by_region)
    page_count = _page_count(req.page_count)

    base = table.base_price_by_site_type[site_type]

    included = table.included_pages_by_site_type.get(site_type, 1)
    extra_pages = max(0, page_count - included)
    pages_cost = extra_pages * table.price_per_extra_page

    features_cost = _features_cost(req.features, table)

    subtotal = base + pages_cost + features_cost
    after_design = subtotal * table.design_multiplier_by_level[design_level]
    after_timeline = after_design * table.timeline_multiplier_by_urgency[timeline]
    location_multiplier = ONE
    if location is not None:
        location_multiplier = table.location_multiplier_by_region[location]
    after_location = after_timeline * location_multiplier

    checkpoints = [
        round_currency(base),
        round_currency(base + pages_cost),
        round_currency(subtotal),
        round_currency(after_design),
        round_currency(after_timeline),
        round_currency(after_location),
    ]
    total = checkpoints[-1]
    low, high = quote_range(total, table.range_band)

    return QuoteBreakdown(
        base=checkpoints[0],
        pages_cost=checkpoints[1] - checkpoints[0],
        features_cost=checkpoints[2] - checkpoints[1],
        design_adjustment=checkpoints[3] - checkpoints[2],
        timeline_adjustment=checkpoints[4] - checkpoints[3],
        location_adjustment=checkpoints[5] - checkpoints[4],
        total=total,
        min=low,
        max=high,
        estimated_timeline=table.timeline_label_by_urgency[timeline],
        price_table_version=table.version,
    )
