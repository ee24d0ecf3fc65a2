"""
Live terminal dashboard — one redrawn row per visible agent.

The dashboard is just another ``EventBus`` subscriber: a consumer
thread drains its queue, folds each event into a row, and redraws the
frame in place. Between events it redraws on a short tick so spinners
and elapsed times keep moving. Workers never wait on the terminal.

Row state machine::

    pending ──start──▶ updating ──finish──▶ updated | unchanged | failed
       └────────────finish (skip)─────────▶ skipped

Rendering (``render_frame``, ``format_row``, …) is pure and takes an
explicit ``now`` so it can be tested without a TTY.
"""

from __future__ import annotations

import logging
import os
import queue
import shutil
import threading
import time
import unicodedata
from dataclasses import dataclass
from typing import IO, Sequence

import click

from uca.core.models.event import Phase, UpdateEvent
from uca.core.models.options import RunOptions
from uca.core.models.result import (
    REASON_DRY_RUN,
    REASON_MANUAL_INSTALL,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_SKIPPED,
    STATUS_UNCHANGED,
    STATUS_UPDATED,
    STATUS_UPDATING,
    FINAL_STATUSES,
)
from uca.core.services.agent_update.domain.versions import safe_version
from uca.core.services.event_bus import END_OF_STREAM, EventBus

logger = logging.getLogger(__name__)

REDRAW_INTERVAL = 0.12

_SPINNER_ASCII = ("-", "\\", "|", "/")
_SPINNER_UNICODE = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

# label → (unicode icon, ascii icon)
_ICONS: dict[str, tuple[str, str]] = {
    STATUS_PENDING: ("·", "."),
    STATUS_UPDATED: ("✓", "ok"),
    STATUS_UNCHANGED: ("≡", "="),
    STATUS_FAILED: ("✕", "x"),
    STATUS_SKIPPED: ("–", "-"),
    "manual": ("○", "o"),
    "dry-run": ("≈", "dr"),
}

_COLORS: dict[str, str] = {
    STATUS_PENDING: "bright_black",
    STATUS_UPDATING: "cyan",
    STATUS_UPDATED: "green",
    "same": "bright_black",
    STATUS_FAILED: "red",
    STATUS_SKIPPED: "yellow",
    "manual": "yellow",
    "dry-run": "magenta",
}


# ── Terminal capabilities ───────────────────────────────────────

def should_use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    term = os.environ.get("TERM", "").lower()
    return term not in ("", "dumb")


def should_use_unicode() -> bool:
    locale = "".join(os.environ.get(k, "") for k in ("LC_ALL", "LC_CTYPE", "LANG")).upper()
    return "UTF-8" in locale or "UTF8" in locale


def term_width() -> int:
    return shutil.get_terminal_size(fallback=(80, 24)).columns


# ── Row model ───────────────────────────────────────────────────

@dataclass
class DashboardRow:
    name: str
    status: str = STATUS_PENDING
    before: str = ""
    after: str = ""
    reason: str = ""
    method: str = ""
    started: float = 0.0
    duration_s: float = 0.0
    visible: bool = False
    detected: bool = False


def apply_event(row: DashboardRow, event: UpdateEvent) -> None:
    """Fold *event* into *row*."""
    res = event.result
    if event.phase == Phase.DETECT:
        row.detected = True
        row.visible = event.visible
        row.status = STATUS_PENDING
        row.reason = res.reason
        row.method = res.method
        row.before = res.before
        if res.status == STATUS_SKIPPED and res.reason == REASON_MANUAL_INSTALL:
            row.status = STATUS_SKIPPED
    elif event.phase == Phase.START:
        row.status = STATUS_UPDATING
        row.before = res.before
        row.method = res.method
        row.started = event.timestamp
    elif event.phase == Phase.FINISH:
        row.status = res.status
        row.before = res.before
        row.after = res.after
        row.reason = res.reason
        row.method = res.method
        row.duration_s = res.duration_s


# ── Rendering (pure) ────────────────────────────────────────────

def fmt_elapsed(seconds: float) -> str:
    total = max(0, int(seconds))
    if total < 60:
        return f"{total}s"
    mins, secs = divmod(total, 60)
    if mins < 60:
        return f"{mins}m{secs:02d}s"
    hours, mins = divmod(mins, 60)
    return f"{hours}h{mins:02d}m"


def spinner_glyph(elapsed: float, unicode: bool) -> str:
    frames = _SPINNER_UNICODE if unicode else _SPINNER_ASCII
    return frames[int(max(0.0, elapsed) / REDRAW_INTERVAL) % len(frames)]


def _char_width(ch: str) -> int:
    if unicodedata.combining(ch):
        return 0
    return 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1


def display_width(text: str) -> int:
    return sum(_char_width(ch) for ch in text)


def fit_line(line: str, width: int, unicode: bool) -> str:
    """Truncate (with an ellipsis) or pad *line* to exactly *width* columns."""
    if width <= 0:
        return line
    line = line.rstrip("\n")
    current = display_width(line)
    if current > width:
        ellipsis = "…" if unicode else "..."
        target = max(0, width - display_width(ellipsis))
        kept: list[str] = []
        used = 0
        for ch in line:
            w = _char_width(ch)
            if used + w > target:
                break
            kept.append(ch)
            used += w
        line = "".join(kept) + ellipsis
        current = display_width(line)
    if current < width:
        line += " " * (width - current)
    return line


def status_label(row: DashboardRow) -> str:
    if row.status == STATUS_UPDATED and row.reason == REASON_DRY_RUN:
        return "dry-run"
    if row.status == STATUS_UNCHANGED:
        return "same"
    if row.status == STATUS_SKIPPED and row.reason == REASON_MANUAL_INSTALL:
        return "manual"
    return row.status


def status_icon(row: DashboardRow, *, now: float, unicode: bool) -> str:
    if row.status == STATUS_UPDATING:
        return spinner_glyph(now - row.started, unicode)
    label = status_label(row)
    if label == "same":
        label = STATUS_UNCHANGED
    uni, ascii_ = _ICONS.get(label, ("-", "-"))
    return uni if unicode else ascii_


def format_row(
    row: DashboardRow,
    name_width: int,
    options: RunOptions,
    *,
    now: float,
    width: int,
    unicode: bool,
    color: bool,
) -> str:
    label = status_label(row)
    icon = status_icon(row, now=now, unicode=unicode)
    arrow = "→" if unicode else "->"

    version = "--"
    elapsed = "--"
    info = ""
    if row.status == STATUS_UPDATING:
        version = f"{safe_version(row.before)} {arrow} {'…' if unicode else '...'}"
        if row.started:
            elapsed = fmt_elapsed(now - row.started)
    elif row.status in (STATUS_UPDATED, STATUS_UNCHANGED, STATUS_FAILED):
        version = f"{safe_version(row.before)} {arrow} {safe_version(row.after)}"
        elapsed = fmt_elapsed(row.duration_s)
        if row.status == STATUS_FAILED and row.reason:
            info = row.reason
    elif row.status == STATUS_SKIPPED and row.reason and row.reason != REASON_MANUAL_INSTALL:
        info = row.reason

    if options.explain and not info and row.method:
        info = row.method
    if label == "dry-run":
        info = "preview"
    if info:
        info = f" ({info})"

    lead = f"{row.name:<{name_width}} "
    line = fit_line(f"{lead}{icon} {label:<9} {version} {elapsed:>6}{info}", width, unicode)
    if color and label in _COLORS and line.startswith(lead + icon):
        styled = click.style(icon, fg=_COLORS[label])
        line = lead + styled + line[len(lead) + len(icon):]
    return line


def render_frame(
    rows: Sequence[DashboardRow],
    options: RunOptions,
    *,
    started: float,
    now: float,
    width: int = 80,
    unicode: bool = False,
    color: bool = False,
) -> str:
    """The whole dashboard as one string (trailing newline included)."""
    total = len(rows)
    detected = sum(1 for r in rows if r.detected)
    visible = [r for r in rows if r.visible]
    spin = spinner_glyph(now - started, unicode)
    elapsed = fmt_elapsed(now - started)

    if detected < total and not visible:
        return fit_line(f"uca  {spin}  detecting {detected}/{total}  {elapsed}", width, unicode) + "\n"

    completed = sum(1 for r in visible if r.status in FINAL_STATUSES)
    ok = sum(1 for r in visible if r.status == STATUS_UPDATED)
    same = sum(1 for r in visible if r.status == STATUS_UNCHANGED)
    fail = sum(1 for r in visible if r.status == STATUS_FAILED)
    header = (
        f"uca  {spin}  {completed}/{len(visible)}  "
        f"ok:{ok} same:{same} fail:{fail}  {elapsed}"
    )
    if detected < total:
        header += f"  detecting {detected}/{total}"

    name_width = max((len(r.name) for r in rows), default=0)
    lines = [fit_line(header, width, unicode), ""]
    lines += [
        format_row(r, name_width, options, now=now, width=width, unicode=unicode, color=color)
        for r in visible
    ]
    return "\n".join(lines) + "\n"


# ── Live consumer ───────────────────────────────────────────────

class LiveDashboard:
    """Consumes an ``EventBus`` and redraws the frame in place.

    Usage::

        dash = LiveDashboard(bus, names, options)
        dash.start()
        ...run the engine, then close the bus...
        dash.join()
    """

    def __init__(
        self,
        bus: EventBus,
        names: Sequence[str],
        options: RunOptions,
        *,
        out: IO[str] | None = None,
    ) -> None:
        self._queue = bus.subscribe(replay=True)
        self._rows = [DashboardRow(name=n) for n in names]
        self._options = options
        self._out = out or click.get_text_stream("stdout")
        self._unicode = should_use_unicode()
        self._color = should_use_color()
        self._width = term_width()
        self._last_lines = 0
        self._started = time.monotonic()
        self._thread = threading.Thread(target=self._loop, name="uca-dashboard", daemon=True)

    @property
    def rows(self) -> list[DashboardRow]:
        return self._rows

    def start(self) -> None:
        self._write("\x1b[?25l")
        self._draw()
        self._thread.start()

    def join(self) -> None:
        """Wait for the end of the stream, then restore the cursor."""
        try:
            self._thread.join()
        finally:
            self._write("\x1b[?25h")

    def _loop(self) -> None:
        while True:
            try:
                event = self._queue.get(timeout=REDRAW_INTERVAL)
            except queue.Empty:
                self._draw()
                continue
            if event is END_OF_STREAM:
                self._draw()
                return
            if 0 <= event.index < len(self._rows):
                apply_event(self._rows[event.index], event)
            self._draw()

    def _draw(self) -> None:
        frame = render_frame(
            self._rows,
            self._options,
            started=self._started,
            now=time.monotonic(),
            width=self._width,
            unicode=self._unicode,
            color=self._color,
        )
        prefix = f"\x1b[{self._last_lines}A" if self._last_lines else ""
        self._write(f"{prefix}\x1b[0G\x1b[0J{frame}")
        self._last_lines = frame.count("\n")

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()
