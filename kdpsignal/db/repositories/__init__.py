from .sample_repository import ListingRepository, SampleRepository
from .snapshot_repository import SnapshotRepository, to_payload
from .rollup_repository import RollupRepository
from .feedback_repository import FeedbackRepository

__all__ = [
    "ListingRepository",
    "SampleRepository",
    "SnapshotRepository",
    "to_payload",
    "RollupRepository",
    "FeedbackRepository",
]
