from __future__ import annotations

import json
import logging
import math
import os
import time
from pathlib import Path
from typing import Any

from .datekeys import parse_day_key
from .tracking import TrackingMode
from .valence import Valence

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_json(path: Path) -> dict[str, Any]:
    """
    Safe load:
    - creates parent dirs
    - if missing/empty -> writes {}
    - if corrupt -> backs up raw text then resets to {}
    Always returns a dict.
    """
    path = Path(path)
    _ensure_parent(path)

    if not path.exists():
        save_json(path, {})
        return {}

    txt = path.read_text(encoding="utf-8").strip()
    if not txt:
        save_json(path, {})
        return {}

    try:
        data = json.loads(txt)
    except json.JSONDecodeError:
        backup = path.with_suffix(f".corrupt-{int(time.time())}.json")
        backup.write_text(txt, encoding="utf-8")
        logger.warning("Corrupt data file %s backed up to %s and reset", path, backup)
        save_json(path, {})
        return {}

    if not isinstance(data, dict):
        logger.warning("Data file %s does not hold an object; ignoring its contents", path)
        return {}
    return data


def save_json(path: Path, data: Any) -> None:
    """
    Atomic-ish save:
    - write to temp file in same directory
    - flush + fsync
    - os.replace to target
    - chmod 0600 best-effort
    """
    path = Path(path)
    _ensure_parent(path)

    tmp = path.with_name(path.name + ".tmp")

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"

    with open(tmp, "w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())

    os.replace(tmp, path)

    try:
        os.chmod(path, 0o600)
    except OSError as e:
        logger.debug("chmod 0600 failed for %s: %s", path, e)


# -------------------------
# Datasets
# -------------------------

def add_dataset(
    data: dict[str, Any],
    name: str,
    valence: Valence | str = Valence.POSITIVE,
    tracking: TrackingMode | str = TrackingMode.SERIES,
    description: str = "",
) -> dict[str, Any]:
    name = name.strip()
    if not name:
        raise SystemExit("Dataset name must not be empty")
    datasets = data.setdefault("datasets", {})
    if name in datasets:
        raise SystemExit(f"Dataset {name!r} already exists")
    ds = {
        "valence": Valence(valence).value,
        "tracking": TrackingMode(tracking).value,
        "description": description,
    }
    datasets[name] = ds
    data.setdefault("entries", {}).setdefault(name, {})
    return ds


def get_dataset(data: dict[str, Any], name: str) -> dict[str, Any]:
    ds = data.get("datasets", {}).get(name)
    if not isinstance(ds, dict):
        known = ", ".join(sorted(data.get("datasets", {}))) or "none yet"
        raise SystemExit(f"Unknown dataset {name!r} (known: {known})")
    return ds


def dataset_valence(ds: dict[str, Any]) -> Valence:
    return Valence(ds.get("valence", Valence.POSITIVE.value))


def dataset_tracking(ds: dict[str, Any]) -> TrackingMode:
    return TrackingMode(ds.get("tracking", TrackingMode.SERIES.value))


# -------------------------
# Entries
# -------------------------

def add_entry(data: dict[str, Any], name: str, day_key: str, value: float) -> list[float]:
    get_dataset(data, name)
    parse_day_key(day_key)
    if not math.isfinite(value):
        raise SystemExit(f"Value must be a finite number (got {value!r})")
    day = data.setdefault("entries", {}).setdefault(name, {}).setdefault(day_key, [])
    day.append(value)
    return day


def day_series(raw: Any) -> list[float]:
    """
    Validating read boundary: keep finite numbers in stored order.
    Anything else (NaN, inf, strings, bools) is dropped with a warning.
    """
    if not isinstance(raw, list):
        return []
    out: list[float] = []
    for v in raw:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            logger.warning("Dropping non-finite or non-numeric entry %r", v)
            continue
        out.append(v)
    return out


def dataset_entries(data: dict[str, Any], name: str) -> dict[str, list[float]]:
    """DayKey -> entries for one dataset, sorted by day, empty days dropped."""
    get_dataset(data, name)
    raw = data.get("entries", {}).get(name, {})
    if not isinstance(raw, dict):
        return {}
    out: dict[str, list[float]] = {}
    for key in sorted(raw):
        parse_day_key(key)
        nums = day_series(raw[key])
        if nums:
            out[key] = nums
    return out
