from __future__ import annotations

import argparse
import calendar
import csv
import logging
import stat
from pathlib import Path
from typing import Any

from ._util import MARKS, WORDS, _fmt_num, _sparkline
from .datekeys import (
    DateKeyError,
    Granularity,
    MalformedKey,
    convert,
    day_key_to_date,
    month_days,
    parse_day_key,
    parse_month_key,
    to_month_key,
    to_year_key,
)
from .extremes import compute_extremes, record_flags
from .models import PeriodExtremes, PeriodStats, RecordFlags
from .paths import describe_data_path_source, resolve_data_path
from .records import PeriodRecord, Streak, calculate_records, records_for_valence
from .safety import assert_safe_data_path
from .stats import (
    compute_daily_stats,
    compute_stats,
    prior_numbers_map,
    roll_up_days,
    roll_up_months,
    roll_up_year,
    roll_up_years,
    stats_delta,
    stats_percent_change,
)
from .storage import (
    add_dataset,
    add_entry,
    dataset_entries,
    dataset_tracking,
    dataset_valence,
    get_dataset,
    load_json,
    save_json,
)
from .timeparse import parse_day, parse_month, parse_year
from .tracking import (
    TrackingMode,
    chart_numbers,
    interactive_points,
    last_value,
    period_valence_value,
    primary_metric,
    primary_value,
    to_chart_points,
)
from .valence import Valence, ValenceChoices, good_sign, resolve_from_direction, resolve_from_number

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# record marker: did the record land on the favorable side?
RECORD_MARKS: ValenceChoices[str] = ValenceChoices(good="★", bad="⚠", neutral="")

# (flag, label, is_high) for the records worth calling out in listings
RECORD_LABELS = [
    ("is_highest_total", "highest total", True),
    ("is_lowest_total", "lowest total", False),
    ("is_highest_count", "busiest", None),
    ("is_highest_max", "highest entry", True),
    ("is_lowest_min", "lowest entry", False),
]


# -------------------------
# Helpers
# -------------------------

def _last_populated_before(entries: dict[str, list[float]], key: str) -> list[float]:
    earlier = [k for k in entries if k < key]
    return entries[earlier[-1]] if earlier else []


def _last_populated_month_before(entries: dict[str, list[float]], day_key: str) -> list[float]:
    earlier = [k for k in entries if k < day_key]
    if not earlier:
        return []
    month_key = convert(earlier[-1], Granularity.MONTH)
    return [n for k in earlier if convert(k, Granularity.MONTH) == month_key for n in entries[k]]


def _record_tags(flags: RecordFlags, valence: Valence) -> str:
    tags: list[str] = []
    for attr, label, is_high in RECORD_LABELS:
        if not getattr(flags, attr):
            continue
        if is_high is None:
            tags.append(label)
        else:
            mark = resolve_from_direction(is_high, valence, RECORD_MARKS)
            tags.append(f"{mark}{label}")
    return f"  [{', '.join(tags)}]" if tags else ""


def _stats_lines(stats: PeriodStats) -> list[str]:
    return [
        f"- entries: {stats.count}",
        f"- total: {_fmt_num(stats.total)}",
        f"- mean: {_fmt_num(stats.mean)}",
        f"- median: {_fmt_num(stats.median)}",
        f"- min/max: {_fmt_num(stats.min)} … {_fmt_num(stats.max)}",
    ]


def _extremes_lines(extremes: PeriodExtremes) -> list[str]:
    return [
        f"- total: {_fmt_num(extremes.lowest_total)} … {_fmt_num(extremes.highest_total)}",
        f"- mean: {_fmt_num(extremes.lowest_mean)} … {_fmt_num(extremes.highest_mean)}",
        f"- median: {_fmt_num(extremes.lowest_median)} … {_fmt_num(extremes.highest_median)}",
        f"- max: {_fmt_num(extremes.lowest_max)} … {_fmt_num(extremes.highest_max)}",
        f"- min: {_fmt_num(extremes.lowest_min)} … {_fmt_num(extremes.highest_min)}",
        f"- busiest: {_fmt_num(extremes.highest_count)} entries",
    ]


def _better_side(valence: Valence) -> str:
    return "higher is better" if good_sign(valence) > 0 else "lower is better"


def _change_lines(current: PeriodStats, prior: PeriodStats, valence: Valence) -> list[str]:
    delta = stats_delta(current, prior)
    pct = stats_percent_change(current, prior)
    lines = []
    for field in ("count", "total", "mean", "median"):
        d = getattr(delta, field)
        line = f"- {field}: {_fmt_num(d, delta=True)}"
        if pct[field] is not None:
            line += f" ({_fmt_num(pct[field], delta=True)}%)"
        if field != "count":
            line += f" {resolve_from_number(d, valence, MARKS)}"
        lines.append(line)
    return lines


def _load_dataset(args: argparse.Namespace) -> tuple[dict[str, Any], Valence, TrackingMode, dict[str, list[float]]]:
    data = load_json(args.data_path)
    ds = get_dataset(data, args.name)
    return ds, dataset_valence(ds), dataset_tracking(ds), dataset_entries(data, args.name)


# -------------------------
# DATASET commands
# -------------------------

def cmd_dataset_add(args: argparse.Namespace) -> None:
    data = load_json(args.data_path)
    add_dataset(data, args.name, args.valence, args.tracking, args.description or "")
    save_json(args.data_path, data)
    logger.debug("Created dataset %r in %s", args.name, args.data_path)
    print(f"✅ Created dataset {args.name!r} (valence={args.valence}, tracking={args.tracking})")


def cmd_dataset_list(args: argparse.Namespace) -> None:
    data = load_json(args.data_path)
    datasets = data.get("datasets", {})
    if not datasets:
        print("No datasets yet. Create one with `tc dataset add NAME`.")
        return

    print("=== Datasets ===")
    for name in sorted(datasets):
        ds = datasets[name]
        entries = dataset_entries(data, name)
        n = sum(len(v) for v in entries.values())
        line = f"- {name}: valence={ds.get('valence')}, tracking={ds.get('tracking')}, {n} entries"
        if entries:
            line += f" ({next(iter(entries))} → {list(entries)[-1]})"
        line += f", {_better_side(dataset_valence(ds))}"
        if ds.get("description"):
            line += f" — {ds['description']}"
        print(line)


# -------------------------
# ENTRY commands
# -------------------------

def cmd_add(args: argparse.Namespace) -> None:
    data = load_json(args.data_path)
    day = parse_day(args.date)
    for value in args.values:
        day_numbers = add_entry(data, args.name, day, value)
    save_json(args.data_path, data)
    print(f"📝 Logged {', '.join(_fmt_num(v) for v in args.values)} to {args.name} @ {day} "
          f"({len(day_numbers)} entries that day)")


def cmd_day(args: argparse.Namespace) -> None:
    _ds, valence, tracking, entries = _load_dataset(args)
    day = parse_day(args.date)
    numbers = entries.get(day, [])
    prior_numbers = _last_populated_before(entries, day)

    print(f"=== {args.name} — {day} ===")
    stats = compute_stats(numbers)
    if stats is None:
        print("No entries for this day.")
        return

    points = to_chart_points(numbers, last_value(prior_numbers), tracking, include_prior_point=True)
    print("\n[Entries]")
    for p in points:
        if p.is_prior:
            print(f"  (previous close {_fmt_num(p.value)})")
    for p in interactive_points(points):
        mark = resolve_from_number(p.valence_value, valence, MARKS)
        line = f"{p.index + 1:>3}. {_fmt_num(p.value)}"
        if tracking is TrackingMode.SERIES:
            line += f"  running total {_fmt_num(p.y)}"
        elif tracking is TrackingMode.TREND:
            line += f"  Δ {_fmt_num(p.delta, delta=True)}"
        print(f"{line}  {mark}")

    print("\n[Stats]")
    for line in _stats_lines(stats):
        print(line)
    print(f"- sparkline: {_sparkline(chart_numbers(numbers, prior_numbers, tracking))}")

    headline = primary_value(numbers, tracking)
    verdict = resolve_from_number(period_valence_value(numbers, prior_numbers, tracking), valence, WORDS)
    print(f"\n{primary_metric(tracking)}: {_fmt_num(headline)} ({verdict})")


def cmd_month(args: argparse.Namespace) -> None:
    _ds, valence, tracking, entries = _load_dataset(args)
    year, month = parse_month(args.month)
    keys = month_days(year, month)

    day_stats = roll_up_days(entries, year, month)
    populated = [s for s in day_stats.values() if s is not None]
    extremes = compute_extremes(day_stats.values()) if len(populated) > 1 else PeriodExtremes()
    priors = prior_numbers_map(keys, entries, _last_populated_before(entries, keys[0]))

    print(f"=== {args.name} — {calendar.month_name[month]} {year} ===")
    if not populated:
        print("No entries this month.")
        return

    print("\n[Days]")
    primaries: list[float | None] = []
    for i, key in enumerate(keys, start=1):
        stats = day_stats[i]
        numbers = entries.get(key, [])
        primaries.append(primary_value(numbers, tracking))
        if stats is None:
            continue
        mark = resolve_from_number(period_valence_value(numbers, priors[key], tracking), valence, MARKS)
        tags = _record_tags(record_flags(stats, extremes), valence)
        print(f"- {key} {day_key_to_date(key):%a}: {_fmt_num(primaries[-1]):>10} {mark} "
              f"({stats.count} entries){tags}")

    month_stats = roll_up_months(entries, year)[month]
    print("\n[Month]")
    for line in _stats_lines(month_stats):
        print(line)
    print(f"- sparkline: {_sparkline(primaries)}")

    prev_year, prev_month = (year, month - 1) if month > 1 else (year - 1, 12)
    prev_stats = roll_up_months(entries, prev_year)[prev_month] if prev_year >= 0 else None
    if prev_stats is not None:
        print(f"\n[vs {to_month_key(prev_year, prev_month)}]")
        for line in _change_lines(month_stats, prev_stats, valence):
            print(line)

    if not extremes.is_empty:
        print("\n[Daily records]")
        for line in _extremes_lines(extremes):
            print(line)


def cmd_year(args: argparse.Namespace) -> None:
    _ds, valence, tracking, entries = _load_dataset(args)
    year = parse_year(args.year)
    year_key = to_year_key(year)

    month_numbers: dict[str, list[float]] = {}
    for key, nums in entries.items():
        if convert(key, Granularity.YEAR) != year_key:
            continue
        month_numbers.setdefault(convert(key, Granularity.MONTH), []).extend(nums)

    month_stats = roll_up_months(entries, year)
    extremes = roll_up_year(month_stats)

    print(f"=== {args.name} — {year} ===")
    if extremes.is_empty:
        print("No entries this year.")
        return

    month_keys = [to_month_key(year, m) for m in range(1, 13)]
    priors = prior_numbers_map(month_keys, month_numbers, _last_populated_month_before(entries, f"{year_key}-01-01"))
    several = sum(1 for s in month_stats.values() if s is not None) > 1

    print("\n[Months]")
    primaries: list[float | None] = []
    for m, mkey in enumerate(month_keys, start=1):
        stats = month_stats[m]
        numbers = month_numbers.get(mkey, [])
        primaries.append(primary_value(numbers, tracking))
        if stats is None:
            print(f"- {calendar.month_abbr[m]}: —")
            continue
        mark = resolve_from_number(period_valence_value(numbers, priors[mkey], tracking), valence, MARKS)
        tags = _record_tags(record_flags(stats, extremes), valence) if several else ""
        print(f"- {calendar.month_abbr[m]}: {_fmt_num(primaries[-1]):>10} {mark} "
              f"(n={stats.count}, mean={_fmt_num(stats.mean)}, median={_fmt_num(stats.median)}){tags}")

    print(f"\n- sparkline: {_sparkline(primaries)}")

    years = roll_up_years(entries)
    if year - 1 in years:
        print(f"\n[vs {to_year_key(year - 1)}]")
        for line in _change_lines(years[year], years[year - 1], valence):
            print(line)

    print("\n[Monthly records]")
    for line in _extremes_lines(extremes):
        print(line)


def cmd_years(args: argparse.Namespace) -> None:
    _ds, valence, tracking, entries = _load_dataset(args)
    years = roll_up_years(entries)

    print(f"=== {args.name} — all years ===")
    if not years:
        print("No entries yet.")
        return

    year_numbers: dict[int, list[float]] = {}
    for key, nums in entries.items():
        year_numbers.setdefault(parse_day_key(key).year, []).extend(nums)
    priors = prior_numbers_map(list(years), year_numbers)
    extremes = compute_extremes(years.values()) if len(years) > 1 else PeriodExtremes()

    print("\n[Years]")
    primaries: list[float | None] = []
    for year, stats in years.items():
        numbers = year_numbers[year]
        primaries.append(primary_value(numbers, tracking))
        mark = resolve_from_number(period_valence_value(numbers, priors[year], tracking), valence, MARKS)
        tags = _record_tags(record_flags(stats, extremes), valence)
        print(f"- {to_year_key(year)}: {_fmt_num(primaries[-1]):>10} {mark} "
              f"(n={stats.count}, mean={_fmt_num(stats.mean)}, median={_fmt_num(stats.median)}){tags}")

    print(f"\n- sparkline: {_sparkline(primaries)}")
    if not extremes.is_empty:
        print("\n[Yearly records]")
        for line in _extremes_lines(extremes):
            print(line)


# -------------------------
# Records
# -------------------------

def _fmt_record(record: PeriodRecord | None) -> str:
    if record is None:
        return "—"
    return f"{_fmt_num(record.value)} ({record.key})"


def _fmt_streak(streak: Streak, unit: str) -> str:
    if not streak.length:
        return "—"
    plural = "" if streak.length == 1 else "s"
    return f"{streak.length} {unit}{plural} ({streak.start} → {streak.end})"


def cmd_records(args: argparse.Namespace) -> None:
    _ds, valence, _tracking, entries = _load_dataset(args)

    print(f"=== {args.name} — records ({_better_side(valence)}) ===")
    if not entries:
        print("No entries yet.")
        return

    records = calculate_records(entries)
    for period, r in records_for_valence(records, valence).items():
        print(f"\n[{period.capitalize()}s]")
        print(f"- best total: {_fmt_record(r.best)}")
        print(f"- worst total: {_fmt_record(r.worst)}")
        print(f"- best median: {_fmt_record(r.best_median)}")
        print(f"- worst median: {_fmt_record(r.worst_median)}")
        print(f"- longest good streak: {_fmt_streak(r.best_streak, period)}")
        print(f"- longest improving streak: {_fmt_streak(r.best_trend_streak, period)}")
        print(f"- longest run with entries: {_fmt_streak(records[period].consecutive_streak, period)}")


# -------------------------
# CSV export
# -------------------------

EXPORT_TYPES = ("daily", "monthly", "entries")

DAILY_CSV_FIELDS = [
    "date",
    "weekday",
    "count",
    "total",
    "mean",
    "median",
    "min",
    "max",
    "primary",
    "change",
    "valence",
]

MONTHLY_CSV_FIELDS = ["month", *DAILY_CSV_FIELDS[2:]]

ENTRY_CSV_FIELDS = ["date", "index", "value"]


def _write_csv(out_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames, quoting=csv.QUOTE_MINIMAL)
        w.writeheader()
        if rows:
            w.writerows(rows)


def _daily_rows(
    entries: dict[str, list[float]], year_key: str | None, valence: Valence, tracking: TrackingMode
) -> list[dict[str, Any]]:
    daily = compute_daily_stats(entries)
    # priors over the full history so the first exported day still sees the previous close
    priors = prior_numbers_map(list(daily), entries)

    rows: list[dict[str, Any]] = []
    for key, stats in daily.items():
        if year_key and convert(key, Granularity.YEAR) != year_key:
            continue
        change = period_valence_value(entries[key], priors[key], tracking)
        rows.append(
            {
                "date": key,
                "weekday": f"{day_key_to_date(key):%a}",
                **stats.as_dict(),
                "primary": primary_value(entries[key], tracking),
                "change": change,
                "valence": resolve_from_number(change, valence, WORDS),
            }
        )
    return rows


def _monthly_rows(
    entries: dict[str, list[float]], year_key: str | None, valence: Valence, tracking: TrackingMode
) -> list[dict[str, Any]]:
    month_numbers: dict[str, list[float]] = {}
    for key, nums in entries.items():
        month_numbers.setdefault(convert(key, Granularity.MONTH), []).extend(nums)
    priors = prior_numbers_map(list(month_numbers), month_numbers)
    by_year = {y: roll_up_months(entries, y) for y in roll_up_years(entries)}

    rows: list[dict[str, Any]] = []
    for mkey, numbers in month_numbers.items():
        if year_key and convert(mkey, Granularity.YEAR) != year_key:
            continue
        year, month = parse_month_key(mkey)
        stats = by_year[year][month]
        change = period_valence_value(numbers, priors[mkey], tracking)
        rows.append(
            {
                "month": mkey,
                **stats.as_dict(),
                "primary": primary_value(numbers, tracking),
                "change": change,
                "valence": resolve_from_number(change, valence, WORDS),
            }
        )
    return rows


def _entry_rows(entries: dict[str, list[float]], year_key: str | None) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for key, nums in entries.items():
        if year_key and convert(key, Granularity.YEAR) != year_key:
            continue
        for i, value in enumerate(nums, start=1):
            rows.append({"date": key, "index": i, "value": value})
    return rows


def cmd_export(args: argparse.Namespace) -> None:
    _ds, valence, tracking, entries = _load_dataset(args)
    year_key = to_year_key(parse_year(args.year)) if args.year else None

    if args.type == "monthly":
        fields, rows = MONTHLY_CSV_FIELDS, _monthly_rows(entries, year_key, valence, tracking)
    elif args.type == "entries":
        fields, rows = ENTRY_CSV_FIELDS, _entry_rows(entries, year_key)
    else:
        fields, rows = DAILY_CSV_FIELDS, _daily_rows(entries, year_key, valence, tracking)

    out_path = Path(args.csv).expanduser().resolve()
    _write_csv(out_path, fields, rows)

    if rows:
        print(f"📄 Exported {len(rows)} {args.type} rows → {out_path}")
    else:
        print(f"📄 Exported header-only CSV (no entries) → {out_path}")


# -------------------------
# Core commands
# -------------------------

def cmd_init(args: argparse.Namespace) -> None:
    data = load_json(args.data_path)
    data.setdefault("datasets", {})
    data.setdefault("entries", {})
    save_json(args.data_path, data)
    print(f"✅ Initialized data file: {args.data_path}")


def cmd_where(args: argparse.Namespace) -> None:
    print(args.data_path)
    print(f"↳ using {describe_data_path_source(args.data_arg, args.profile)}")


def cmd_doctor(args: argparse.Namespace) -> None:
    print("=== tallycal doctor ===")

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)
    print("✅ Data path safety guard: OK")

    data = load_json(args.data_path)
    print("✅ JSON readable: OK")

    bad = 0
    for name in data.get("datasets", {}):
        raw = data.get("entries", {}).get(name, {})
        try:
            kept = dataset_entries(data, name)
        except MalformedKey as e:
            print(f"⚠️ Dataset {name!r} has a malformed day key: {e}")
            continue
        stored = sum(len(v) for v in raw.values() if isinstance(v, list)) if isinstance(raw, dict) else 0
        bad += stored - sum(len(v) for v in kept.values())
    if bad:
        print(f"⚠️ {bad} stored entries are not finite numbers and will be ignored")
    else:
        print("✅ Entries: all finite")

    try:
        perms = stat.S_IMODE(args.data_path.stat().st_mode)
        print(f"🔐 File permissions: {oct(perms)} (target 0o600)")
    except FileNotFoundError:
        print("⚠️ Data file missing (run `tc init`)")

    print("=== Done ===")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tc", description="tallycal: log numbers by day, review by month and year")
    p.add_argument("--data", default=None, help="Path to data JSON (overrides env/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("--allow-repo-data-path", action="store_true", help="Override safety guard (not recommended)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("init", help="Initialize data store safely").set_defaults(func=cmd_init)
    sub.add_parser("where", help="Show which data file is active and why").set_defaults(func=cmd_where)
    sub.add_parser("doctor", help="Run safety + health checks").set_defaults(func=cmd_doctor)

    # ---- dataset ----
    dataset = sub.add_parser("dataset", help="Manage tracked datasets")
    dataset_sub = dataset.add_subparsers(dest="dataset_cmd", required=True)

    ds_add = dataset_sub.add_parser("add", help="Create a dataset")
    ds_add.add_argument("name")
    ds_add.add_argument("--valence", choices=[v.value for v in Valence], default=Valence.POSITIVE.value,
                        help="positive: higher is better; negative: lower is better")
    ds_add.add_argument("--tracking", choices=[t.value for t in TrackingMode], default=TrackingMode.SERIES.value,
                        help="series: running totals; trend: level readings with deltas; none: raw")
    ds_add.add_argument("--description", default=None)
    ds_add.set_defaults(func=cmd_dataset_add)

    dataset_sub.add_parser("list", help="List datasets").set_defaults(func=cmd_dataset_list)

    # ---- entries ----
    add = sub.add_parser("add", help="Log one or more numbers for a day")
    add.add_argument("name")
    add.add_argument("values", type=float, nargs="+")
    add.add_argument("--date", default=None, help="ISO, 'yesterday', or '3 days ago' (default today)")
    add.set_defaults(func=cmd_add)

    day = sub.add_parser("day", help="Entries, chart points and stats for one day")
    day.add_argument("name")
    day.add_argument("--date", default=None)
    day.set_defaults(func=cmd_day)

    month = sub.add_parser("month", help="Per-day summary with records for a month")
    month.add_argument("name")
    month.add_argument("--month", default=None, help="YYYY-MM (default current month)")
    month.set_defaults(func=cmd_month)

    year = sub.add_parser("year", help="Per-month roll-up with records for a year")
    year.add_argument("name")
    year.add_argument("--year", default=None, help="YYYY (default current year)")
    year.set_defaults(func=cmd_year)

    years = sub.add_parser("years", help="Per-year overview across all data")
    years.add_argument("name")
    years.set_defaults(func=cmd_years)

    records = sub.add_parser("records", help="Best/worst days, weeks, months and longest streaks")
    records.add_argument("name")
    records.set_defaults(func=cmd_records)

    export = sub.add_parser("export", help="Export a summary CSV")
    export.add_argument("name")
    export.add_argument("--csv", required=True, help="Output CSV path (e.g. ~/steps_daily.csv)")
    export.add_argument("--type", choices=EXPORT_TYPES, default="daily",
                        help="daily: one row per day; monthly: one row per month; entries: one row per entry")
    export.add_argument("--year", default=None, help="Only this year (default all)")
    export.set_defaults(func=cmd_export)

    return p


def main(argv=None) -> None:
    p = build_parser()
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    args.data_arg = args.data
    args.data_path = resolve_data_path(args.data, args.profile)
    logger.debug("Data path: %s", args.data_path)

    assert_safe_data_path(args.data_path, args.allow_repo_data_path)

    try:
        args.func(args)
    except DateKeyError as e:
        raise SystemExit(f"Bad date key: {e}") from e


if __name__ == "__main__":
    main()
