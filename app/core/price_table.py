"""Price table: the declarative configuration behind every quote.

The table is plain data. ``DEFAULT_PRICE_TABLE_DATA`` is the canonical
mapping; ``load_price_table`` validates it and freezes it into a
``PriceTable``. The active table is only ever replaced as a whole
(``set_price_table``), never edited in place.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Mapping

from app.core.enums import DesignLevel, Location, SiteType, Timeline
from app.core.exceptions import PriceTableError

logger = logging.getLogger(__name__)

PRICE_TABLE_VERSION = "2025.1"

DEFAULT_PRICE_TABLE_DATA = {
    "version": PRICE_TABLE_VERSION,
    "base_price_by_site_type": {
        "landing": 1500,
        "business": 2500,
        "ecommerce": 3500,
        "webapp": 5000,
    },
    "included_pages_by_site_type": {
        "landing": 1,
        "business": 5,
        "ecommerce": 10,
        "webapp": 5,
    },
    "price_per_extra_page": 200,
    "feature_price_by_key": {
        "cms": 500,
        "booking": 300,
        "payments": 500,
        "blog": 300,
        "membership": 1000,
        "seo": 500,
        "analytics": 200,
        "chat": 200,
        "customForms": 300,
    },
    "design_multiplier_by_level": {
        "template": "1.0",
        "custom": "1.5",
        "premium": "2.0",
    },
    "timeline_multiplier_by_urgency": {
        "flexible": "0.9",
        "standard": "1.0",
        "rush": "1.25",
    },
    "location_multiplier_by_region": {
        "us": "1.0",
        "international": "1.1",
    },
    "timeline_label_by_urgency": {
        "rush": "2-3 weeks",
        "standard": "4-6 weeks",
        "flexible": "6-8 weeks",
    },
    "range_band": "0.05",
}


@dataclass(frozen=True)
class PriceTable:
    version: str
    base_price_by_site_type: Mapping[str, Decimal]
    included_pages_by_site_type: Mapping[str, int]
    price_per_extra_page: Decimal
    feature_price_by_key: Mapping[str, Decimal]
    design_multiplier_by_level: Mapping[str, Decimal]
    timeline_multiplier_by_urgency: Mapping[str, Decimal]
    location_multiplier_by_region: Mapping[str, Decimal]
    timeline_label_by_urgency: Mapping[str, str]
    range_band: Decimal


def _to_decimal(name: str, value: Any) -> Decimal:
    # str() first so 1.1 becomes Decimal("1.1"), not its binary expansion
    if isinstance(value, bool):
        raise PriceTableError(f"{name} must be numeric, got {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise PriceTableError(f"{name} must be numeric, got {value!r}")
    if not result.is_finite():
        raise PriceTableError(f"{name} must be finite, got {value!r}")
    return result


def _price(name: str, value: Any) -> Decimal:
    amount = _to_decimal(name, value)
    if amount < 0:
        raise PriceTableError(f"{name} must be non-negative, got {value!r}")
    return amount


def _multiplier(name: str, value: Any) -> Decimal:
    factor = _to_decimal(name, value)
    if factor <= 0:
        raise PriceTableError(f"{name} must be positive, got {value!r}")
    return factor


def _section(data: Mapping, key: str) -> Mapping:
    section = data.get(key)
    if not isinstance(section, Mapping):
        raise PriceTableError(f"Price table section {key!r} must be a mapping")
    return section


def _require_members(section_name: str, section: Mapping, enum_cls) -> None:
    missing = [member.value for member in enum_cls if member.value not in section]
    if missing:
        raise PriceTableError(f"Price table section {section_name!r} is missing {missing}")


def _freeze(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


def load_price_table(data: Mapping) -> PriceTable:
    """Validate a price table mapping and return an immutable ``PriceTable``."""
    if not isinstance(data, Mapping):
        raise PriceTableError("Price table must be a mapping")

    base = _section(data, "base_price_by_site_type")
    included = _section(data, "included_pages_by_site_type")
    features = _section(data, "feature_price_by_key")
    design = _section(data, "design_multiplier_by_level")
    timeline = _section(data, "timeline_multiplier_by_urgency")
    location = _section(data, "location_multiplier_by_region")
    labels = _section(data, "timeline_label_by_urgency")

    _require_members("base_price_by_site_type", base, SiteType)
    _require_members("included_pages_by_site_type", included, SiteType)
    _require_members("design_multiplier_by_level", design, DesignLevel)
    _require_members("timeline_multiplier_by_urgency", timeline, Timeline)
    _require_members("location_multiplier_by_region", location, Location)
    _require_members("timeline_label_by_urgency", labels, Timeline)

    included_pages = {}
    for site_type, pages in included.items():
        if isinstance(pages, bool) or not isinstance(pages, int) or pages < 0:
            raise PriceTableError(
                f"included_pages_by_site_type[{site_type!r}] must be a non-negative integer"
            )
        included_pages[str(site_type)] = pages

    band = _to_decimal("range_band", data.get("range_band", 0))
    if not Decimal(0) <= band < Decimal(1):
        raise PriceTableError(f"range_band must be in [0, 1), got {band}")

    if "price_per_extra_page" not in data:
        raise PriceTableError("Price table is missing 'price_per_extra_page'")

    return PriceTable(
        version=str(data.get("version", "unversioned")),
        base_price_by_site_type=_freeze(
            {str(k): _price(f"base_price_by_site_type[{k!r}]", v) for k, v in base.items()}
        ),
        included_pages_by_site_type=_freeze(included_pages),
        price_per_extra_page=_price("price_per_extra_page", data["price_per_extra_page"]),
        feature_price_by_key=_freeze(
            {str(k): _price(f"feature_price_by_key[{k!r}]", v) for k, v in features.items()}
        ),
        design_multiplier_by_level=_freeze(
            {str(k): _multiplier(f"design_multiplier_by_level[{k!r}]", v) for k, v in design.items()}
        ),
        timeline_multiplier_by_urgency=_freeze(
            {str(k): _multiplier(f"timeline_multiplier_by_urgency[{k!r}]", v) for k, v in timeline.items()}
        ),
        location_multiplier_by_region=_freeze(
            {str(k): _multiplier(f"location_multiplier_by_region[{k!r}]", v) for k, v in location.items()}
        ),
        timeline_label_by_urgency=_freeze({str(k): str(v) for k, v in labels.items()}),
        range_band=band,
    )


DEFAULT_PRICE_TABLE = load_price_table(DEFAULT_PRICE_TABLE_DATA)

_active_table: PriceTable = DEFAULT_PRICE_TABLE


def get_price_table() -> PriceTable:
    return _active_table


def set_price_table(table: PriceTable) -> PriceTable:
    """Replace the active table in one assignment and return the previous one."""
    global _active_table
    if not isinstance(table, PriceTable):
        raise PriceTableError("set_price_table expects a PriceTable; use load_price_table first")
    previous = _active_table
    _active_table = table
    logger.info(f"Price table switched from {previous.version} to {table.version}")
    return previous
