from pydantic import BaseModel
from typing import Dict


class ReminderStats(BaseModel):
    total: int
    active: int
    by_type: Dict[str, int]
    by_source: Dict[str, int]
    by_status: Dict[str, int]


class NotificationStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_channel: Dict[str, int]
    estimated_cost: float
    success_rate: float  # percent of attempts with status 'sent'


class StationStats(BaseModel):
    total: int
    active: int


class AnalyticsOverview(BaseModel):
    reminders: ReminderStats
    notifications: NotificationStats
    stations: StationStats
    opted_out_phones: int
