"""Shared text helpers for the CLI."""

from __future__ import annotations

from collections.abc import Sequence

from .valence import ValenceChoices

# good / bad / neutral marks used next to values and deltas
MARKS: ValenceChoices[str] = ValenceChoices(good="▲", bad="▼", neutral="·")
WORDS: ValenceChoices[str] = ValenceChoices(good="good", bad="bad", neutral="neutral")


def _fmt_num(value: float | None, delta: bool = False) -> str:
    if value is None:
        return "—"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, float):
        text = f"{value:,.2f}".rstrip("0").rstrip(".")
    else:
        text = f"{value:,}"
    if delta and value > 0:
        text = "+" + text
    return text


def _sparkline(values: Sequence[float | None], vmin: float | None = None, vmax: float | None = None) -> str:
    """One block per value; None renders as a gap. Scale defaults to the data's own range."""
    present = [v for v in values if v is not None]
    if not present:
        return ""
    lo = min(present) if vmin is None else vmin
    hi = max(present) if vmax is None else vmax
    blocks = "▁▂▃▄▅▆▇█"
    span = max(1e-9, hi - lo)
    out = []
    for v in values:
        if v is None:
            out.append(" ")
            continue
        x = (v - lo) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)
