from .royalty import (
    estimate_royalty,
    estimate_printing_cost,
    estimate_monthly_income,
    explain_royalty,
    IncomeEstimate,
    RoyaltyBreakdown,
)
from .windows import (
    Sample,
    ListingInfo,
    WindowAggregate,
    WindowBounds,
    aggregate,
    split_windows,
    mom_percent,
)
from .impact import DriverImpactCalculator, DriverWeights, ImpactResult, compute_drivers_and_impact
from .confidence import confidence_from

__all__ = [
    "estimate_royalty",
    "estimate_printing_cost",
    "estimate_monthly_income",
    "explain_royalty",
    "IncomeEstimate",
    "RoyaltyBreakdown",
    "Sample",
    "ListingInfo",
    "WindowAggregate",
    "WindowBounds",
    "aggregate",
    "split_windows",
    "mom_percent",
    "DriverImpactCalculator",
    "DriverWeights",
    "ImpactResult",
    "compute_drivers_and_impact",
    "confidence_from",
]
