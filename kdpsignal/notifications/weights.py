"""Per-listing driver weight learning from feedback.

Each feedback event nudges all four weights toward the feedback signal with
an exponential moving average, then clamps and renormalizes them:

    w' = clamp(0.95 * w + 0.05 * signal, 0.05, 0.6)
"""

from kdpsignal.signals.impact import DriverWeights
from kdpsignal.signals.windows import clamp

EMA_DECAY = 0.95
WEIGHT_MIN = 0.05
WEIGHT_MAX = 0.6

FEEDBACK_ACTIONS = ("clicked", "dismissed", "helpful", "ignored")
LEARNING_ACTIONS = ("clicked", "helpful")


def signal_for(action: str, sign: str | None = None) -> int:
    """Learning signal for a feedback action: +1, -1 or 0."""
    if action not in FEEDBACK_ACTIONS:
        raise ValueError(f"Unknown feedback action: {action}")
    if action in LEARNING_ACTIONS:
        return -1 if sign == "negative" else 1
    return 0


def ema_weights(old: DriverWeights | None, signal: float) -> DriverWeights:
    """Move every weight toward the signal, clamp, then renormalize."""
    w = old or DriverWeights()

    def step(value: float) -> float:
        return clamp(EMA_DECAY * value + (1 - EMA_DECAY) * signal, WEIGHT_MIN, WEIGHT_MAX)

    return DriverWeights(
        reviews=step(w.reviews),
        bsr=step(w.bsr),
        royalty=step(w.royalty),
        price=step(w.price),
    ).renormalize()
