from .database import get_db, init_db, engine, async_session_maker
from .models import (
    Listing,
    AsinSample,
    NotificationSnapshot,
    NotificationDailyRollup,
    NotificationFeedback,
    FeedbackLedgerRecord,
)

__all__ = [
    "get_db",
    "init_db",
    "engine",
    "async_session_maker",
    "Listing",
    "AsinSample",
    "NotificationSnapshot",
    "NotificationDailyRollup",
    "NotificationFeedback",
    "FeedbackLedgerRecord",
]
