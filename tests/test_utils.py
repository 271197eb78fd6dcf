from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from cafe_admin import config
from cafe_admin.utils.dates import parse_date, resolve_period, to_local, to_utc
from cafe_admin.utils.formatting import format_brl, format_pct
from cafe_admin.utils.forms import parse_count, parse_price

NOW = datetime(2026, 10, 18, 15, 30)


def test_period_today():
    p = resolve_period("today", now=NOW)
    assert p.name == "today"
    assert p.start == datetime(2026, 10, 18)
    assert p.end == NOW


def test_period_week_and_month_include_today():
    assert resolve_period("week", now=NOW).start == datetime(2026, 10, 12)
    assert resolve_period("month", now=NOW).start == datetime(2026, 9, 19)


def test_period_custom_inclusive_days():
    p = resolve_period("custom", date(2026, 10, 5), date(2026, 10, 7), now=NOW)
    assert p.start == datetime(2026, 10, 5)
    assert p.end == datetime.combine(date(2026, 10, 7), time.max)
    assert p.contains(datetime(2026, 10, 7, 23, 59))


def test_period_custom_swaps_and_single_day():
    swapped = resolve_period("custom", date(2026, 10, 7), date(2026, 10, 5), now=NOW)
    assert (swapped.first_day, swapped.last_day) == (date(2026, 10, 5), date(2026, 10, 7))

    single = resolve_period("custom", date(2026, 10, 5), now=NOW)
    assert single.first_day == single.last_day == date(2026, 10, 5)


def test_period_fallbacks_to_today():
    assert resolve_period("custom", now=NOW).name == "today"
    assert resolve_period("year", now=NOW).name == "today"
    assert resolve_period(None, now=NOW).name == "today"


def test_parse_date():
    assert parse_date("2026-10-05") == date(2026, 10, 5)
    assert parse_date("05/10/2026") == date(2026, 10, 5)
    assert parse_date("amanhã") is None
    assert parse_date(None) is None


def test_timezone_conversion(monkeypatch):
    monkeypatch.setattr(config, "TIMEZONE", "America/Sao_Paulo")
    # naive из БД считается UTC
    assert to_local(datetime(2026, 10, 1, 12)) == datetime(2026, 10, 1, 9)
    aware = datetime(2026, 10, 1, 12, tzinfo=timezone(timedelta(hours=2)))
    assert to_local(aware) == datetime(2026, 10, 1, 7)
    assert to_utc(datetime(2026, 10, 1, 9)) == datetime(2026, 10, 1, 12, tzinfo=timezone.utc)


def test_format_brl():
    assert format_brl(1234.5) == "R$ 1.234,50"
    assert format_brl(Decimal("1000000")) == "R$ 1.000.000,00"
    assert format_brl(0) == "R$ 0,00"
    assert format_brl(None) == "R$ 0,00"
    assert format_brl(-3.25) == "-R$ 3,25"


def test_format_pct():
    assert format_pct(12.345) == "+12.3%"
    assert format_pct(-5) == "-5.0%"
    assert format_pct(0) == "0.0%"


def test_parse_price():
    assert parse_price("12,50") == Decimal("12.50")
    assert parse_price(" 7 ") == Decimal("7.00")
    assert parse_price("-1") is None
    assert parse_price("abc") is None
    assert parse_price("NaN") is None
    assert parse_price("") is None
    assert parse_price("9" * 27) is None
    assert parse_price("1E+30") is None
    assert parse_price("9999999999,99") == Decimal("9999999999.99")


def test_parse_count():
    assert parse_count("3") == 3
    assert parse_count("") == 0
    assert parse_count("-2") is None
    assert parse_count("1.5") is None
