from supabase import Client
from app.modules.analytics.schemas import (
    AnalyticsOverview, ReminderStats, NotificationStats, StationStats
)
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import HTTPException


def _count_by(rows: List[Dict[str, Any]], column: str) -> Dict[str, int]:
    return dict(Counter(str(row.get(column) or "unknown") for row in rows))


class AnalyticsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def reminder_stats(self) -> ReminderStats:
        rows = self.supabase.table("reminders")\
            .select("reminder_type, source, status")\
            .is_("deleted_at", "null")\
            .execute().data or []
        by_status = _count_by(rows, "status")
        return ReminderStats(
            total=len(rows),
            active=by_status.get("active", 0),
            by_type=_count_by(rows, "reminder_type"),
            by_source=_count_by(rows, "source"),
            by_status=by_status,
        )

    def notification_stats(self, since: Optional[datetime] = None) -> NotificationStats:
        query = self.supabase.table("notification_log").select("status, channel, estimated_cost")
        if since:
            query = query.gte("sent_at", since.isoformat())
        rows = query.execute().data or []
        by_status = _count_by(rows, "status")
        total = len(rows)
        return NotificationStats(
            total=total,
            by_status=by_status,
            by_channel=_count_by(rows, "channel"),
            estimated_cost=round(sum(float(row.get("estimated_cost") or 0) for row in rows), 4),
            success_rate=round(by_status.get("sent", 0) * 100 / total, 1) if total else 0.0,
        )

    def station_stats(self) -> StationStats:
        rows = self.supabase.table("kiosk_stations").select("is_active").execute().data or []
        return StationStats(total=len(rows), active=len([r for r in rows if r.get("is_active")]))

    def overview(self, since: Optional[datetime] = None) -> AnalyticsOverview:
        try:
            opt_outs = self.supabase.table("global_opt_outs")\
                .select("phone", count="exact")\
                .is_("deleted_at", "null")\
                .execute()
            return AnalyticsOverview(
                reminders=self.reminder_stats(),
                notifications=self.notification_stats(since),
                stations=self.station_stats(),
                opted_out_phones=opt_outs.count if opt_outs.count is not None else len(opt_outs.data or []),
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
