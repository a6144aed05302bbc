"""Driver detection and net-impact scoring.

Net Impact Formula:
    net_impact = clamp(
        review_velocity_pct * w_reviews +
        bsr_improvement_pct * w_bsr +
        royalty_change_pct * w_royalty +
        price_change_pct * w_price,
        -300, 300,
    )

Status requires two gates to agree: the driver score (signals past their
threshold, positive minus negative) and the month-over-month royalty change.
"""

from dataclasses import dataclass, asdict, field

from .windows import WindowAggregate, clamp, mom_percent

NET_IMPACT_MIN = -300.0
NET_IMPACT_MAX = 300.0

STATUS_BETTER = "better"
STATUS_WORSE = "worse"
STATUS_STABLE = "stable"
STATUSES = (STATUS_BETTER, STATUS_WORSE, STATUS_STABLE)

DRIVER_VELOCITY_UP = "Review velocity up"
DRIVER_VELOCITY_DOWN = "Review velocity down"
DRIVER_BSR_IMPROVED = "BSR improved"
DRIVER_BSR_WORSENED = "BSR worsened"
DRIVER_ROYALTY_UP = "Royalty up"
DRIVER_ROYALTY_DOWN = "Royalty down"
DRIVER_PRICE_UP = "Price up"
DRIVER_PRICE_DOWN = "Price down"


@dataclass
class DriverWeights:
    """Relative weight of each signal in the net impact."""

    reviews: float = 0.35
    bsr: float = 0.30
    royalty: float = 0.25
    price: float = 0.10

    def renormalize(self) -> "DriverWeights":
        """Scale weights to sum to 1; non-positive sums fall back to defaults."""
        total = self.reviews + self.bsr + self.royalty + self.price
        if total <= 0:
            return DriverWeights()
        return DriverWeights(
            reviews=self.reviews / total,
            bsr=self.bsr / total,
            royalty=self.royalty / total,
            price=self.price / total,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "DriverWeights":
        """Build renormalized weights from a stored mapping, filling gaps with defaults."""
        if not isinstance(data, dict):
            return cls()
        defaults = cls()
        values = {}
        for name in ("reviews", "bsr", "royalty", "price"):
            try:
                values[name] = float(data.get(name, getattr(defaults, name)))
            except (TypeError, ValueError):
                values[name] = getattr(defaults, name)
        return cls(**values).renormalize()


@dataclass
class SignalChanges:
    """Raw deltas between the previous and current window."""

    review_velocity_delta: float
    bsr_delta_pct: float  # positive = rank improved
    royalty_delta_pct: float
    price_delta_pct: float


@dataclass
class ImpactResult:
    """Drivers, net impact and status for one listing."""

    drivers: list[str]
    net_impact: float
    status: str
    driver_score: int
    mom_pct: float
    changes: SignalChanges | None = field(default=None)


class DriverImpactCalculator:
    """Calculator for drivers, net impact and status."""

    # Thresholds (fixed policy)
    REVIEW_VELOCITY_THRESHOLD = 0.1  # reviews/day
    BSR_THRESHOLD_PCT = 3.0
    ROYALTY_THRESHOLD_PCT = 1.0
    PRICE_THRESHOLD_PCT = 1.0

    # Royalty month-over-month gate for status
    MOM_GATE_PCT = 1.0

    def compute_changes(self, prev: WindowAggregate, curr: WindowAggregate) -> SignalChanges:
        """Compute the per-signal deltas."""
        return SignalChanges(
            review_velocity_delta=curr.review_velocity - prev.review_velocity,
            # Lower BSR is better
            bsr_delta_pct=-mom_percent(prev.avg_bsr, curr.avg_bsr),
            royalty_delta_pct=mom_percent(prev.avg_royalty, curr.avg_royalty),
            price_delta_pct=mom_percent(prev.avg_price, curr.avg_price),
        )

    def _gated(self, changes: SignalChanges) -> list[tuple[int, str]]:
        """Signals past their threshold as (sign, driver name)."""
        checks = [
            (changes.review_velocity_delta, self.REVIEW_VELOCITY_THRESHOLD,
             DRIVER_VELOCITY_UP, DRIVER_VELOCITY_DOWN),
            (changes.bsr_delta_pct, self.BSR_THRESHOLD_PCT,
             DRIVER_BSR_IMPROVED, DRIVER_BSR_WORSENED),
            (changes.royalty_delta_pct, self.ROYALTY_THRESHOLD_PCT,
             DRIVER_ROYALTY_UP, DRIVER_ROYALTY_DOWN),
            (changes.price_delta_pct, self.PRICE_THRESHOLD_PCT,
             DRIVER_PRICE_UP, DRIVER_PRICE_DOWN),
        ]
        gated = []
        for delta, threshold, up, down in checks:
            if abs(delta) >= threshold:
                gated.append((1, up) if delta > 0 else (-1, down))
        return gated

    def compute_drivers(
        self, prev: WindowAggregate, curr: WindowAggregate
    ) -> tuple[list[str], SignalChanges]:
        """Named drivers for the signals that moved past their threshold."""
        changes = self.compute_changes(prev, curr)
        return [name for _, name in self._gated(changes)], changes

    def driver_score(self, changes: SignalChanges) -> int:
        """Positive drivers minus negative drivers."""
        return sum(sign for sign, _ in self._gated(changes))

    def weighted_net_impact(
        self,
        changes: SignalChanges,
        prev_review_velocity: float,
        weights: DriverWeights | None = None,
    ) -> float:
        """Weighted sum of the percentage deltas, clamped to [-300, 300]."""
        w = (weights or DriverWeights()).renormalize()
        # Review velocity expressed as a percentage of its own baseline
        rv_pct = mom_percent(
            prev_review_velocity, prev_review_velocity + changes.review_velocity_delta
        )
        score = (
            rv_pct * w.reviews
            + changes.bsr_delta_pct * w.bsr
            + changes.royalty_delta_pct * w.royalty
            + changes.price_delta_pct * w.price
        )
        return clamp(score, NET_IMPACT_MIN, NET_IMPACT_MAX)

    def status_from(self, driver_score: int, mom_pct: float) -> str:
        """Classify status; both gates must agree."""
        if driver_score > 0 and mom_pct > self.MOM_GATE_PCT:
            return STATUS_BETTER
        if driver_score < 0 and mom_pct < -self.MOM_GATE_PCT:
            return STATUS_WORSE
        return STATUS_STABLE

    def calculate(
        self,
        prev: WindowAggregate,
        curr: WindowAggregate,
        weights: DriverWeights | None = None,
    ) -> ImpactResult:
        """Compute drivers, net impact and status for two windows."""
        drivers, changes = self.compute_drivers(prev, curr)
        score = self.driver_score(changes)
        mom_pct = mom_percent(prev.avg_royalty, curr.avg_royalty)

        return ImpactResult(
            drivers=drivers,
            net_impact=self.weighted_net_impact(changes, prev.review_velocity, weights),
            status=self.status_from(score, mom_pct),
            driver_score=score,
            mom_pct=mom_pct,
            changes=changes,
        )


_default_calculator = DriverImpactCalculator()


def compute_drivers_and_impact(
    prev: WindowAggregate,
    curr: WindowAggregate,
    weights: DriverWeights | None = None,
) -> ImpactResult:
    """Module-level shortcut for DriverImpactCalculator().calculate()."""
    return _default_calculator.calculate(prev, curr, weights)


def weighted_net_impact(
    changes: SignalChanges,
    prev_review_velocity: float,
    weights: DriverWeights | None = None,
) -> float:
    return _default_calculator.weighted_net_impact(changes, prev_review_velocity, weights)


def status_from(driver_score: int, mom_pct: float) -> str:
    return _default_calculator.status_from(driver_score, mom_pct)
