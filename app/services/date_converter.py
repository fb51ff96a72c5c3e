"""
Date Converter Service
Handles conversion between Gregorian and Jalali (Persian) calendars
"""
import calendar as _gregorian_calendar
import re
from datetime import date, datetime

from app.exceptions import DateConversionError

GREGORIAN = "gregorian"
JALALI = "jalali"
CALENDARS = (GREGORIAN, JALALI)

# Jalali years at which the leap pattern shifts (arithmetic approximation
# of the astronomical vernal equinox rule)
_BREAKS = (
    -61, 9, 38, 199, 426, 686, 756, 818, 1111, 1181, 1210,
    1635, 2060, 2097, 2192, 2262, 2324, 2394, 2456, 3178,
)

JALALI_MONTH_NAMES = {
    1: "فروردین",
    2: "اردیبهشت",
    3: "خرداد",
    4: "تیر",
    5: "مرداد",
    6: "شهریور",
    7: "مهر",
    8: "آبان",
    9: "آذر",
    10: "دی",
    11: "بهمن",
    12: "اسفند",
}

# Persian and Arabic-Indic digits from the fa datepicker
_DIGITS = str.maketrans("۰۱۲۳۴۵۶۷۸۹٠١٢٣٤٥٦٧٨٩", "01234567890123456789")
_FORMAT_TOKEN = re.compile(r"\\?[YymndjF]")


def _div(a: int, b: int) -> int:
    """Integer division truncated toward zero"""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _mod(a: int, b: int) -> int:
    return a - _div(a, b) * b


def _jal_cal(jy: int) -> tuple[int, int, int]:
    """
    Resolve the calendar facts of a Jalali year.

    Returns:
        (leap, gy, march): leap is the number of years since the last leap
        year (0 means jy itself is leap), gy the Gregorian year in which jy
        begins and march the day of March on which Farvardin 1 falls.
    """
    if jy < _BREAKS[0] or jy >= _BREAKS[-1]:
        raise DateConversionError(f"Jalali year {jy} is out of the supported range")

    gy = jy + 621
    leap_j = -14
    jp = _BREAKS[0]
    jump = 0
    for jm in _BREAKS[1:]:
        jump = jm - jp
        if jy < jm:
            break
        leap_j += _div(jump, 33) * 8 + _div(_mod(jump, 33), 4)
        jp = jm

    n = jy - jp
    leap_j += _div(n, 33) * 8 + _div(_mod(n, 33) + 3, 4)
    if _mod(jump, 33) == 4 and jump - n == 4:
        leap_j += 1

    leap_g = _div(gy, 4) - _div((_div(gy, 100) + 1) * 3, 4) - 150
    march = 20 + leap_j - leap_g

    if jump - n < 6:
        n = n - jump + _div(jump + 4, 33) * 33
    leap = _mod(_mod(n + 1, 33) - 1, 4)
    if leap == -1:
        leap = 4

    return leap, gy, march


# Outside the break table the plain 33-year cycle (8 leap years per cycle) takes over
_FIRST_YEAR = _BREAKS[0]
_LAST_YEAR = _BREAKS[-1] - 1


def _is_cyclic_leap(jy: int) -> bool:
    return (25 * jy + 11) % 33 < 8


def _cyclic_leap_count(start: int, end: int) -> int:
    """Leap years in [start, end) under the 33-year cycle"""
    cycles, rest = divmod(end - start, 33)
    return cycles * 8 + sum(_is_cyclic_leap(y) for y in range(end - rest, end))


def is_leap_jalali_year(jy: int) -> bool:
    if _FIRST_YEAR <= jy <= _LAST_YEAR:
        return _jal_cal(jy)[0] == 0
    return _is_cyclic_leap(jy)


def jalali_month_length(jy: int, jm: int) -> int:
    if jm <= 6:
        return 31
    if jm <= 11:
        return 30
    return 30 if is_leap_jalali_year(jy) else 29


def _nowruz(jy: int) -> int:
    """Proleptic Gregorian ordinal of Farvardin 1 of a Jalali year"""
    if jy < _FIRST_YEAR:
        days = 365 * (_FIRST_YEAR - jy) + _cyclic_leap_count(jy, _FIRST_YEAR)
        return _nowruz(_FIRST_YEAR) - days

    if jy > _LAST_YEAR:
        after_table = _nowruz(_LAST_YEAR) + 365 + is_leap_jalali_year(_LAST_YEAR)
        days = 365 * (jy - _LAST_YEAR - 1) + _cyclic_leap_count(_LAST_YEAR + 1, jy)
        return after_table + days

    _, gy, march = _jal_cal(jy)
    return date(gy, 3, march).toordinal()


def jalali_to_gregorian(jy: int, jm: int, jd: int) -> date:
    if not 1 <= jm <= 12:
        raise DateConversionError(f"Invalid Jalali month: {jm}")
    if not 1 <= jd <= jalali_month_length(jy, jm):
        raise DateConversionError(f"Jalali date {jy:04d}-{jm:02d}-{jd:02d} does not exist")

    day_of_year = (jm - 1) * 31 - _div(jm, 7) * (jm - 7) + jd - 1
    try:
        return date.fromordinal(_nowruz(jy) + day_of_year)
    except (ValueError, OverflowError) as e:
        raise DateConversionError(
            f"Jalali date {jy:04d}-{jm:02d}-{jd:02d} is outside the Gregorian date range"
        ) from e


def gregorian_to_jalali(value: date) -> tuple[int, int, int]:
    """Jalali (year, month, day) for any Gregorian date from 0001-01-01 to 9999-12-31"""
    ordinal = value.toordinal()
    jy = value.year - 621
    start = _nowruz(jy)
    if ordinal < start:
        # Before Nowruz: still in the last months of the previous year
        jy -= 1
        start = _nowruz(jy)

    k = ordinal - start
    if k <= 185:
        return jy, 1 + k // 31, k % 31 + 1
    k -= 186
    return jy, 7 + k // 30, k % 30 + 1


def _split_date(date_str: str) -> tuple[int, int, int]:
    """Split a YYYY-MM-DD or YYYY/MM/DD string into integers"""
    if not isinstance(date_str, str):
        raise DateConversionError(f"Invalid date: {date_str!r}")

    parts = date_str.strip().translate(_DIGITS).replace("/", "-").split("-")
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        raise DateConversionError(f"Invalid date format: {date_str!r}")

    return int(parts[0]), int(parts[1]), int(parts[2])


def _month_name(month: int, calendar: str) -> str:
    if not 1 <= month <= 12:
        return ""
    if calendar == JALALI:
        return JALALI_MONTH_NAMES[month]
    return _gregorian_calendar.month_name[month]


def _render(pattern: str, year: int, month: int, day: int, calendar: str) -> str:
    """Substitute Y y m n d j F tokens; a backslash keeps the next letter literal"""

    def substitute(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("\\"):
            return token[1:]
        return {
            "Y": f"{year:04d}",
            "y": f"{year % 100:02d}",
            "m": f"{month:02d}",
            "n": str(month),
            "d": f"{day:02d}",
            "j": str(day),
            "F": _month_name(month, calendar),
        }[token]

    return _FORMAT_TOKEN.sub(substitute, pattern)


class DateConverter:
    """Calendar-aware conversion, validation and display formatting"""

    def __init__(self, calendar_type: str = GREGORIAN, date_format: str = "Y-m-d", clock=None):
        if calendar_type not in CALENDARS:
            raise ValueError(f"Unknown calendar type: {calendar_type}")
        self.calendar_type = calendar_type
        self.date_format = date_format
        self.clock = clock

    @classmethod
    def from_settings(cls, settings, clock=None) -> "DateConverter":
        return cls(settings.calendar_type, settings.date_format, clock)

    @property
    def is_jalali(self) -> bool:
        return self.calendar_type == JALALI

    def _resolve(self, calendar: str | None) -> str:
        calendar = calendar or self.calendar_type
        if calendar not in CALENDARS:
            raise ValueError(f"Unknown calendar type: {calendar}")
        return calendar

    def _as_date(self, value) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return self.to_gregorian(value, GREGORIAN)

    def to_gregorian(self, date_str: str, source_calendar: str | None = None) -> date:
        """
        Convert a date string in the given calendar to a Gregorian date.

        Args:
            date_str: Date in 'YYYY-MM-DD' or 'YYYY/MM/DD' format
            source_calendar: 'gregorian' or 'jalali', defaults to the configured calendar

        Raises:
            DateConversionError: if the string does not parse or the date does not exist
        """
        year, month, day = _split_date(date_str)

        if self._resolve(source_calendar) == JALALI:
            return jalali_to_gregorian(year, month, day)

        try:
            return date(year, month, day)
        except ValueError as e:
            raise DateConversionError(f"Invalid Gregorian date {date_str!r}: {e}") from e

    def to_jalali(self, gregorian, fmt: str = "Y-m-d") -> str:
        """Convert a Gregorian date (or 'YYYY-MM-DD' string) to a formatted Jalali date"""
        jy, jm, jd = gregorian_to_jalali(self._as_date(gregorian))
        return _render(fmt, jy, jm, jd, JALALI)

    def is_valid_date(self, date_str: str, calendar: str | None = None) -> bool:
        try:
            year, month, day = _split_date(date_str)
        except DateConversionError:
            return False

        if self._resolve(calendar) == JALALI:
            # Sanity bounds before the full conversion
            if not (1300 <= year <= 1500 and 1 <= month <= 12 and 1 <= day <= 31):
                return False
            try:
                jalali_to_gregorian(year, month, day)
            except DateConversionError:
                return False
            return True

        try:
            date(year, month, day)
        except ValueError:
            return False
        return True

    def format(self, gregorian, calendar: str | None = None, pattern: str | None = None) -> str:
        """Format a stored Gregorian date for display in the given calendar"""
        value = self._as_date(gregorian)
        if self._resolve(calendar) == JALALI:
            return self.to_jalali(value, pattern or "Y/m/d")
        return _render(pattern or self.date_format, value.year, value.month, value.day, GREGORIAN)

    def prepare_for_storage(self, user_input_date, active_calendar: str | None = None) -> date:
        """Normalize a user-facing date to the Gregorian date stored in the database"""
        if isinstance(user_input_date, (date, datetime)):
            return self._as_date(user_input_date)
        return self.to_gregorian(user_input_date, active_calendar)

    def today(self, fmt: str | None = None) -> str:
        current = self.clock.now().date() if self.clock else date.today()
        return self.format(current, pattern=fmt or "Y-m-d")

    def month_name(self, month: int, calendar: str | None = None) -> str:
        return _month_name(month, self._resolve(calendar))

    def datepicker_config(self) -> dict:
        """Configuration for the booking form datepicker"""
        if self.is_jalali:
            return {
                "calendar_type": JALALI,
                "format": "YYYY-MM-DD",
                "separator": "-",
                "locale": "fa",
                "today": self.today("Y-m-d"),
            }
        return {
            "calendar_type": GREGORIAN,
            "format": "yy-mm-dd",
            "today": self.today("Y-m-d"),
        }
