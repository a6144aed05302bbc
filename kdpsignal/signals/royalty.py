"""Royalty and income estimation for KDP paperbacks.

Royalty Formula:
    base_price = price / (1 + vat_rate)        (vat_rate > 0)
    gross_royalty = 0.60 * base_price
    printing_cost = fixed + per_page * clamp(pages, 24, 828)
    royalty = max(0, gross_royalty - printing_cost)

Income Formula:
    monthly_income = royalty * bucket_units(bsr)

The income figure is an order-of-magnitude estimate, not a forecast.
Consumers should display the band, not the point value.
"""

import math
import re
from dataclasses import dataclass

# Fixed KDP expanded-distribution share on the list price (ex VAT)
DISTRIBUTION_RATE = 0.60

MIN_PAGES = 24
MAX_PAGES = 828
DEFAULT_PAGES = 120

MARKET_BY_COUNTRY = {
    "com": "US",
    "us": "US",
    "it": "EU",
    "de": "EU",
    "fr": "EU",
    "es": "EU",
    "co.uk": "UK",
    "uk": "UK",
}

DEFAULT_MARKET = "EU"

# Reduced VAT rates on printed books by marketplace domain
BOOK_VAT = {
    "it": 0.04,
    "de": 0.07,
    "fr": 0.055,
    "es": 0.04,
    "co.uk": 0.0,
    "uk": 0.0,
    "com": 0.0,
}

# Paperback printing costs in marketplace-local currency.
# Format: market -> interior -> trim class -> (fixed, per_page)
# Approximations of the KDP help tables; update when KDP changes pricing.
PRINT_COST = {
    "US": {
        "bw": {"small": (0.85, 0.012), "large": (0.85, 0.014)},
        "color": {"small": (0.85, 0.0267), "large": (0.85, 0.035)},
        "premium": {"small": (0.85, 0.077), "large": (0.85, 0.090)},
    },
    "EU": {
        "bw": {"small": (0.60, 0.010), "large": (0.60, 0.012)},
        "color": {"small": (0.60, 0.050), "large": (0.60, 0.060)},
        "premium": {"small": (0.60, 0.100), "large": (0.60, 0.120)},
    },
    "UK": {
        "bw": {"small": (0.70, 0.010), "large": (0.70, 0.012)},
        "color": {"small": (0.70, 0.040), "large": (0.70, 0.050)},
        "premium": {"small": (0.70, 0.090), "large": (0.70, 0.100)},
    },
}

# KDP threshold: width > 6.12" or height > 9" is a large trim
LARGE_TRIM_WIDTH_IN = 6.12
LARGE_TRIM_HEIGHT_IN = 9.0

# (max_bsr, estimated monthly units); last bucket catches everything above
INCOME_BUCKETS = [
    (500, 7000),
    (1000, 4500),
    (5000, 1200),
    (10000, 600),
    (25000, 330),
    (50000, 180),
    (100000, 90),
    (None, 60),
]

_INCH_PAIR = re.compile(
    r"(\d{1,2}(?:[.,]\d+)?)\s*[x×]\s*(\d{1,2}(?:[.,]\d+)?)(?:\s*(?:in|inch|inches))?",
    re.IGNORECASE,
)
_CM_PAIR = re.compile(
    r"(\d{1,2}(?:[.,]\d+)?)\s*[x×]\s*(\d{1,2}(?:[.,]\d+)?)\s*cm",
    re.IGNORECASE,
)


@dataclass
class PrintCost:
    """Printing cost components."""

    fixed: float
    per_page: float
    per_page_cost: float
    total: float


@dataclass
class RoyaltyBreakdown:
    """Every intermediate of a royalty estimate."""

    country: str
    market: str
    vat_rate: float
    price: float
    base_price: float
    distribution_rate: float
    pages: int
    interior: str
    trim_class: str
    print_cost: PrintCost
    gross_royalty: float
    net_royalty: float


@dataclass
class IncomeEstimate:
    """Monthly sales and income band derived from BSR."""

    monthly_units: int  # point estimate (bucket upper end)
    units_low: int
    units_high: int
    monthly_income: float
    income_low: float
    income_high: float
    methodology: str


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half away from zero, unlike the banker's rounding of round()."""
    if value < 0:
        return -round_half_up(-value, digits)
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round2(value: float) -> float:
    return round_half_up(value, 2)


def _to_float(value) -> float | None:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


def clamp_pages(page_count) -> int:
    """Clamp a page count to KDP paperback bounds, defaulting when unknown."""
    x = _to_float(page_count)
    if x is None:
        return DEFAULT_PAGES
    return max(MIN_PAGES, min(MAX_PAGES, int(math.floor(x + 0.5))))


def resolve_market(country: str | None) -> str:
    """Map a marketplace country code to its print-cost market."""
    return MARKET_BY_COUNTRY.get((country or "").lower(), DEFAULT_MARKET)


def vat_rate_for(country: str | None) -> float:
    """Reduced book VAT for a marketplace; 0 when unknown."""
    return BOOK_VAT.get((country or "").lower(), 0.0)


def infer_trim_class(trim_size: str | None = None, dimensions_raw: str | None = None) -> str:
    """Classify a trim as 'small' or 'large' from a 'W x H' string."""
    text = str(trim_size or dimensions_raw or "").lower()
    if not text:
        return "small"

    match = _INCH_PAIR.search(text)
    cm_match = _CM_PAIR.search(text)
    if cm_match and (not match or cm_match.start() <= match.start()):
        w = float(cm_match.group(1).replace(",", ".")) / 2.54
        h = float(cm_match.group(2).replace(",", ".")) / 2.54
    elif match:
        w = float(match.group(1).replace(",", "."))
        h = float(match.group(2).replace(",", "."))
    else:
        return "small"

    width, height = min(w, h), max(w, h)
    if width > LARGE_TRIM_WIDTH_IN or height > LARGE_TRIM_HEIGHT_IN:
        return "large"
    return "small"


def _print_cost_config(market: str, interior: str, trim_class: str) -> tuple[float, float]:
    tables = PRINT_COST[market]
    table = tables.get(interior, tables["bw"])
    return table.get(trim_class, table["small"])


def _print_cost(
    page_count,
    country: str | None,
    interior_type: str | None,
    trim_size: str | None,
    dimensions_raw: str | None,
) -> PrintCost:
    market = resolve_market(country)
    trim_class = infer_trim_class(trim_size, dimensions_raw)
    fixed, per_page = _print_cost_config(market, interior_type or "bw", trim_class)
    pages = clamp_pages(page_count)
    return PrintCost(
        fixed=fixed,
        per_page=per_page,
        per_page_cost=round2(per_page * pages),
        total=round2(fixed + per_page * pages),
    )


def estimate_printing_cost(
    page_count=None,
    country: str | None = None,
    interior_type: str | None = "bw",
    trim_size: str | None = None,
    dimensions_raw: str | None = None,
) -> float:
    """Estimate the per-copy printing cost of a paperback."""
    return _print_cost(page_count, country, interior_type, trim_size, dimensions_raw).total


def estimate_royalty(
    price,
    page_count=None,
    country: str | None = None,
    interior_type: str | None = "bw",
    trim_size: str | None = None,
    dimensions_raw: str | None = None,
) -> float:
    """Estimate the net royalty per copy. Returns 0 for missing or invalid prices."""
    value = _to_float(price)
    if value is None or value <= 0:
        return 0.0

    vat = vat_rate_for(country)
    base_price = value / (1 + vat) if vat > 0 else value
    gross = DISTRIBUTION_RATE * base_price
    cost = estimate_printing_cost(page_count, country, interior_type, trim_size, dimensions_raw)
    net = gross - cost
    return round2(net) if net > 0 else 0.0


def explain_royalty(
    price,
    page_count=None,
    country: str | None = None,
    interior_type: str | None = "bw",
    trim_size: str | None = None,
    dimensions_raw: str | None = None,
) -> RoyaltyBreakdown:
    """Return the full royalty computation, rounded per component."""
    code = (country or "").lower()
    value = _to_float(price) or 0.0
    if value < 0:
        value = 0.0
    vat = vat_rate_for(code)
    interior = interior_type if interior_type in PRINT_COST[resolve_market(code)] else "bw"
    cost = _print_cost(page_count, code, interior, trim_size, dimensions_raw)

    base_price = value / (1 + vat) if vat > 0 else value
    gross = round2(DISTRIBUTION_RATE * base_price)

    return RoyaltyBreakdown(
        country=code,
        market=resolve_market(code),
        vat_rate=vat,
        price=value,
        base_price=round2(base_price),
        distribution_rate=DISTRIBUTION_RATE,
        pages=clamp_pages(page_count),
        interior=interior,
        trim_class=infer_trim_class(trim_size, dimensions_raw),
        print_cost=cost,
        gross_royalty=gross,
        net_royalty=max(0.0, round2(gross - cost.total)),
    )


def _bucket_index(bsr: float) -> int:
    for i, (max_bsr, _) in enumerate(INCOME_BUCKETS):
        if max_bsr is None or bsr <= max_bsr:
            return i
    return len(INCOME_BUCKETS) - 1


def estimate_monthly_income(bsr, royalty) -> IncomeEstimate:
    """Estimate a monthly unit and income band from BSR and per-copy royalty."""
    rank = _to_float(bsr)
    per_copy = _to_float(royalty)
    if not rank or rank <= 0 or not per_copy or per_copy <= 0:
        return IncomeEstimate(
            monthly_units=0,
            units_low=0,
            units_high=0,
            monthly_income=0.0,
            income_low=0.0,
            income_high=0.0,
            methodology="Insufficient data (need BSR and royalty)",
        )

    idx = _bucket_index(rank)
    units_high = INCOME_BUCKETS[idx][1]
    units_low = INCOME_BUCKETS[idx + 1][1] if idx + 1 < len(INCOME_BUCKETS) else 0

    return IncomeEstimate(
        monthly_units=units_high,
        units_low=units_low,
        units_high=units_high,
        monthly_income=round2(per_copy * units_high),
        income_low=round2(per_copy * units_low),
        income_high=round2(per_copy * units_high),
        methodology=(
            f"BSR bucket estimate at #{int(rank):,}: "
            f"{units_low:,}-{units_high:,} copies/month at {per_copy:.2f} royalty"
        ),
    )
