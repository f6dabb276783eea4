from pydantic import Field
from app.modules.stations.schemas import GuestReminderCreate


class KioskSubmission(GuestReminderCreate):
    """Form posted by the station tablet"""
    station_slug: str = Field(min_length=1)
