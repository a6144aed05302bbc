"""Confidence tier from window coverage and sample count."""

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

HIGH_MIN_COVERAGE_DAYS = 14
HIGH_MIN_SAMPLES = 50
MEDIUM_MIN_COVERAGE_DAYS = 7


def confidence_from(coverage_days: float, sample_count: int) -> str:
    """Return 'high', 'medium' or 'low'."""
    if coverage_days >= HIGH_MIN_COVERAGE_DAYS and sample_count >= HIGH_MIN_SAMPLES:
        return CONFIDENCE_HIGH
    if coverage_days >= MEDIUM_MIN_COVERAGE_DAYS:
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_LOW
