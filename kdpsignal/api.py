"""HTTP API for the KDP notification engine."""

from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kdpsignal.config import settings
from kdpsignal.db.database import get_db
from kdpsignal.notifications.engine import NotificationEngine
from kdpsignal.notifications.ranker import SIGN_POSITIVE
from kdpsignal.notifications.service import NotificationService
from kdpsignal.signals.royalty import estimate_monthly_income, explain_royalty

app = FastAPI(
    title="KDP Signal API",
    description="ASIN trend notifications for KDP publishers",
    version=settings.mcp_server_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models
class FeedbackRequest(BaseModel):
    user_id: str
    snapshot_id: str
    action: str
    sign: str = SIGN_POSITIVE


class GenerateRequest(BaseModel):
    user_id: Optional[str] = None


def get_service(session: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(session)


def get_engine() -> NotificationEngine:
    return NotificationEngine()


# Endpoints
@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "kdp-signal", "version": settings.mcp_server_version}


@app.get("/api/notifications")
async def list_notifications(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    asin: Optional[str] = None,
    since: Optional[datetime] = None,
    recommended_only: bool = False,
    service: NotificationService = Depends(get_service),
):
    """Recent notifications ranked by relevance for the user."""
    ranked = await service.list_ranked(
        user_id,
        limit=limit,
        asin=asin,
        since=since,
        recommended_only=recommended_only,
    )
    return {"items": [candidate.to_dict() for candidate in ranked]}


@app.get("/api/notifications/summary")
async def notification_summary(
    user_id: str,
    asin: Optional[str] = None,
    window_days: int = 30,
    mode: str = "latest",
    service: NotificationService = Depends(get_service),
):
    """Better/worse/stable counts from the daily rollups."""
    try:
        summary = await service.summary(user_id, asin=asin, window_days=window_days, mode=mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return summary.to_dict()


@app.post("/api/notifications/feedback")
async def submit_feedback(
    request: FeedbackRequest,
    service: NotificationService = Depends(get_service),
):
    """Record a reaction to a notification."""
    try:
        return await service.submit_feedback(
            request.user_id,
            request.snapshot_id,
            request.action,
            request.sign,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/notifications/generate")
async def generate_notifications(
    request: GenerateRequest,
    engine: NotificationEngine = Depends(get_engine),
):
    """Run the generation pipeline now for one user or everyone."""
    report = await engine.run(user_id=request.user_id)
    return report.to_dict()


@app.get("/api/royalty")
async def royalty(
    price: float,
    page_count: Optional[int] = None,
    country: str = "com",
    interior_type: str = "bw",
    trim_size: Optional[str] = None,
    bsr: Optional[int] = None,
):
    """Royalty breakdown for a paperback, with an income band when BSR is given."""
    breakdown = explain_royalty(
        price,
        page_count=page_count,
        country=country,
        interior_type=interior_type,
        trim_size=trim_size,
    )
    result = {"royalty": asdict(breakdown)}
    if bsr is not None:
        result["income"] = asdict(estimate_monthly_income(bsr, breakdown.net_royalty))
    return result


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
