"""MCP Tool handlers for KDP Signal."""

from kdpsignal.db.database import async_session_maker
from kdpsignal.notifications.ranker import RankedCandidate
from kdpsignal.notifications.service import NotificationService
from kdpsignal.notifications.summary import NotificationSummary, top_drivers
from kdpsignal.signals.royalty import (
    IncomeEstimate,
    RoyaltyBreakdown,
    estimate_monthly_income,
    explain_royalty,
)

STATUS_LABELS = {
    "better": "Better",
    "worse": "Worse",
    "stable": "Stable",
}


def _int_arg(arguments: dict, name: str, default: int | None = None) -> int | None:
    value = arguments.get(name, default)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer")


def format_notifications(user_id: str, ranked: list[RankedCandidate]) -> str:
    """Render ranked notifications as markdown."""
    if not ranked:
        return f"No notifications yet for user {user_id}. Snapshots are generated daily."

    lines = [
        f"# Notifications for {user_id}",
        "",
        "| ASIN | Status | Net impact | Drivers | Confidence | Score |",
        "|------|--------|-----------:|---------|------------|------:|",
    ]
    for candidate in ranked:
        snap = candidate.snapshot
        drivers = ", ".join(snap.drivers) or "-"
        star = " *" if candidate.recommended else ""
        lines.append(
            f"| {snap.asin} | {STATUS_LABELS.get(snap.status, snap.status)} | "
            f"{snap.net_impact:+.1f} | {drivers} | {snap.confidence} | {candidate.score}{star} |"
        )

    common = top_drivers([c.snapshot for c in ranked])
    if common:
        lines += ["", "## Most frequent drivers"]
        lines += [f"- {driver} ({count})" for driver, count in common]

    top = ranked[0]
    if top.snapshot.recommendations:
        lines += ["", f"## Suggested actions for {top.snapshot.asin}"]
        lines += [f"- {tip}" for tip in top.snapshot.recommendations]

    lines += ["", "---", "*\\* recommended*"]
    return "\n".join(lines)


def format_summary(user_id: str, summary: NotificationSummary) -> str:
    """Render a rollup summary as markdown."""
    as_of = summary.as_of.isoformat() if summary.as_of else "no data"
    return f"""# Catalog Trend: {user_id}
**Mode:** {summary.mode} | **Window:** {summary.window_days} days | **As of:** {as_of}

| Better | Worse | Stable |
|-------:|------:|-------:|
| {summary.counts["better"]} | {summary.counts["worse"]} | {summary.counts["stable"]} |

**Average net impact:** {summary.net_impact_avg:+.1f}
**Sentiment:** {summary.sentiment}"""


def format_royalty(breakdown: RoyaltyBreakdown, income: IncomeEstimate | None = None) -> str:
    """Render a royalty breakdown (and optional income band) as markdown."""
    cost = breakdown.print_cost
    text = f"""# Royalty Estimate
**Marketplace:** amazon.{breakdown.country or "com"} ({breakdown.market})

| Component | Value |
|-----------|------:|
| List price | {breakdown.price:.2f} |
| VAT rate | {breakdown.vat_rate * 100:.1f}% |
| Price excl. VAT | {breakdown.base_price:.2f} |
| Royalty share | {breakdown.distribution_rate * 100:.0f}% |
| Gross royalty | {breakdown.gross_royalty:.2f} |
| Printing cost ({breakdown.pages} pages, {breakdown.interior}, {breakdown.trim_class}) | {cost.total:.2f} |
| **Net royalty per copy** | **{breakdown.net_royalty:.2f}** |"""

    if income is not None:
        text += f"""

## Monthly Income
- Estimated sales: {income.units_low:,} - {income.units_high:,} copies/month
- Estimated income: {income.income_low:,.2f} - {income.income_high:,.2f}
- *{income.methodology}*"""
    return text


async def get_notifications_handler(arguments: dict) -> str:
    """Handle get_notifications tool call."""
    user_id = arguments.get("user_id", "")
    if not user_id:
        return "Error: user_id is required"

    limit = _int_arg(arguments, "limit", 10)
    async with async_session_maker() as session:
        ranked = await NotificationService(session).list_ranked(
            user_id,
            limit=limit,
            asin=arguments.get("asin") or None,
            recommended_only=bool(arguments.get("recommended_only", False)),
        )
    return format_notifications(user_id, ranked)


async def get_notification_summary_handler(arguments: dict) -> str:
    """Handle get_notification_summary tool call."""
    user_id = arguments.get("user_id", "")
    if not user_id:
        return "Error: user_id is required"

    async with async_session_maker() as session:
        summary = await NotificationService(session).summary(
            user_id,
            asin=arguments.get("asin") or None,
            window_days=_int_arg(arguments, "window_days", 30),
            mode=arguments.get("mode", "latest"),
        )
    return format_summary(user_id, summary)


async def estimate_royalty_handler(arguments: dict) -> str:
    """Handle estimate_royalty tool call."""
    price = arguments.get("price")
    if price is None:
        return "Error: price is required"

    breakdown = explain_royalty(
        price,
        page_count=_int_arg(arguments, "page_count"),
        country=arguments.get("country", "com"),
        interior_type=arguments.get("interior_type", "bw"),
        trim_size=arguments.get("trim_size"),
    )
    bsr = _int_arg(arguments, "bsr")
    income = estimate_monthly_income(bsr, breakdown.net_royalty) if bsr is not None else None
    return format_royalty(breakdown, income)
