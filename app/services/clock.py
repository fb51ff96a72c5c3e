from datetime import datetime
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall-clock time in the business timezone, as naive datetimes"""

    def __init__(self, timezone: str = "Asia/Tehran"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        # Bookings are stored as local date + time without an offset
        return datetime.now(self.tz).replace(tzinfo=None)
