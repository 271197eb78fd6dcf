from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from cafe_admin import config

PERIODS = ("today", "week", "month", "custom")


def local_tz() -> ZoneInfo:
    return ZoneInfo(config.TIMEZONE)


def local_now() -> datetime:
    """Текущее время кафе (naive, в локальном поясе)"""
    return datetime.now(local_tz()).replace(tzinfo=None)


def to_local(dt: datetime) -> datetime:
    """
    Время из БД -> naive локальное.
    Naive значения считаем UTC (так их отдаёт SQLite).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(local_tz()).replace(tzinfo=None)


def to_utc(dt: datetime) -> datetime:
    """Naive локальное -> aware UTC, для фильтров по timestamptz"""
    return dt.replace(tzinfo=local_tz()).astimezone(timezone.utc)


def parse_date(s: Optional[str]) -> Optional[date]:
    if not s:
        return None
    s = s.strip()
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d.%m.%Y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    return None


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def day_end(d: date) -> datetime:
    return datetime.combine(d, time.max)


@dataclass(frozen=True)
class Period:
    name: str
    start: datetime   # naive локальное, включительно
    end: datetime     # naive локальное, включительно

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        return self.end.date()

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt <= self.end


def resolve_period(
    name: Optional[str],
    start: Optional[date] = None,
    end: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Period:
    """
    Период дашборда:
      today:  с полуночи до сейчас
      week:   последние 7 дней, включая сегодня
      month:  последние 30 дней, включая сегодня
      custom: start..end включительно; без end один день start;
              end раньше start меняем местами; без start как today
    Неизвестное имя периода работает как today.
    """
    now = now or local_now()
    today = now.date()
    name = (name or "today").strip().lower()

    if name == "week":
        return Period("week", day_start(today - timedelta(days=6)), now)
    if name == "month":
        return Period("month", day_start(today - timedelta(days=29)), now)
    if name == "custom" and start:
        end = end or start
        if end < start:
            start, end = end, start
        return Period("custom", day_start(start), day_end(end))
    return Period("today", day_start(today), now)
