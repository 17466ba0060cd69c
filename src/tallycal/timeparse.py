from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from .datekeys import MalformedKey, date_to_day_key, parse_month_key


def _today_local() -> date:
    return datetime.now().astimezone().date()


def parse_day(value: str | None) -> str:
    """
    Parse flexible user date input into a DayKey (YYYY-MM-DD).
    Accepts:
      - None / blank -> today
      - ISO date "2026-02-25" (a full ISO datetime keeps only its date)
      - "2026/02/25"
      - keywords: "today", "yesterday", "tomorrow"
      - relative: "3 days ago", "1 day ago", "2 weeks ago"
    """
    if not value or not value.strip():
        return date_to_day_key(_today_local())

    raw = value.strip()
    s = raw.lower()
    today = _today_local()

    # --- 1) ISO 8601 ---
    try:
        return date_to_day_key(date.fromisoformat(raw))
    except ValueError:
        pass
    try:
        return date_to_day_key(datetime.fromisoformat(raw).date())
    except ValueError:
        pass

    # --- 2) Keywords ---
    offsets = {"today": 0, "yesterday": -1, "tomorrow": 1}
    if s in offsets:
        return date_to_day_key(today + timedelta(days=offsets[s]))

    # --- 3) Relative like "3 days ago", "2 weeks ago" ---
    m = re.fullmatch(r"([0-9]+)\s*(day|days|week|weeks)\s*ago", s)
    if m:
        n = int(m.group(1))
        days = n * 7 if "week" in m.group(2) else n
        return date_to_day_key(today - timedelta(days=days))

    # --- 4) Slash format ---
    try:
        return date_to_day_key(datetime.strptime(raw, "%Y/%m/%d").date())
    except ValueError:
        pass

    raise SystemExit(
        f"Could not parse date {value!r}. Try ISO like '2026-02-25', "
        f"'2026/02/25', 'yesterday' or '3 days ago'."
    )


def parse_month(value: str | None) -> tuple[int, int]:
    """'2026-02' or '2026/2' -> (2026, 2); None/blank -> current month."""
    if not value or not value.strip():
        today = _today_local()
        return today.year, today.month
    m = re.fullmatch(r"([0-9]{4})[-/]([0-9]{1,2})", value.strip())
    if not m:
        raise SystemExit(f"Could not parse month {value!r}. Try '2026-02'.")
    try:
        return parse_month_key(f"{m.group(1)}-{int(m.group(2)):02d}")
    except MalformedKey as e:
        raise SystemExit(f"Could not parse month {value!r}. Try '2026-02'.") from e


def parse_year(value: str | None) -> int:
    if not value or not str(value).strip():
        return _today_local().year
    s = str(value).strip()
    if not re.fullmatch(r"[0-9]{4}", s):
        raise SystemExit(f"Could not parse year {value!r}. Try '2026'.")
    return int(s)
