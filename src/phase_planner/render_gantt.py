from __future__ import annotations

import datetime as dt
from importlib import metadata
from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")  # ensure headless, deterministic output
import matplotlib.dates as mdates
import matplotlib.pyplot as plt

from .dates import date_range, today
from .project_models import WorkItem
from .render_rows import FlatRenderRow, to_render_rows

FONT_SCALE = 1.0
TITLE_FONT = 14 * FONT_SCALE
LABEL_FONT = 10 * FONT_SCALE
FOOTER_FONT = 8 * FONT_SCALE
TICK_FONT = 9 * FONT_SCALE
TOP_MARGIN_FRAC = 0.85
TITLE_Y = 0.985
ROW_HEIGHT = 0.6
PHASE_BAR_HEIGHT = 0.35
TODAY_COLOR = "#e74c3c"


def render_gantt(
    items: Sequence[WorkItem],
    out_path: str,
    title: str,
    min_date: dt.date | None = None,
    max_date: dt.date | None = None,
) -> None:
    """
    Render a static SVG timeline of a reindexed sequence to `out_path`.

    - The visible window comes from `date_range` unless overridden.
    - Phases are thin opaque bars, tasks are full-height bars in the phase
      colour at reduced opacity with a darker progress overlay.
    - Rows with unparseable dates only emit their label.
    """

    rows = to_render_rows(items)
    window = date_range(items)
    min_date = min_date or window.start
    max_date = max_date or window.end
    if max_date < min_date:
        raise ValueError(f"max_date {max_date} precedes min_date {min_date}")

    span_days = (max_date - min_date).days + 1
    fig_height = max(3.0, ROW_HEIGHT * len(rows) + 2.0)
    fig_width = max(12.0, min(24.0, span_days / 7.0 * 2.0 + 6.0))
    fig = plt.figure(figsize=(fig_width, fig_height))
    # Allocate explicit grid: left column for labels, right for chart.
    gs = fig.add_gridspec(1, 2, width_ratios=[1.4, 4.0], wspace=0.05, left=0.04, right=0.98, top=TOP_MARGIN_FRAC, bottom=0.1)
    label_ax = fig.add_subplot(gs[0, 0])
    ax = fig.add_subplot(gs[0, 1], sharey=label_ax)

    # Configure axes: dates on x, rows on y.
    ax.set_ylim(-1, max(1, len(rows)))
    ax.invert_yaxis()
    ax.set_xlim(mdates.date2num(min_date), mdates.date2num(max_date + dt.timedelta(days=1)))
    ax.xaxis_date()
    ax.xaxis.tick_top()
    major_locator, major_formatter = _major_tick_strategy(span_days)
    ax.xaxis.set_major_locator(major_locator)
    ax.xaxis.set_major_formatter(major_formatter)
    ax.grid(True, axis="x", which="major", linestyle="--", alpha=0.4)
    ax.tick_params(axis="x", labelrotation=30, labelsize=TICK_FONT, pad=4)
    ax.set_yticks([])

    label_ax.set_xlim(0, 1)
    label_ax.axis("off")

    fig.suptitle(title, x=0.5, fontsize=TITLE_FONT, y=TITLE_Y)
    fig.text(0.99, 0.01, f"phase-planner v{_tool_version()}", ha="right", va="bottom", fontsize=FOOTER_FONT, alpha=0.8)

    for idx, row in enumerate(rows):
        _draw_label(label_ax, idx, row)
        _draw_bar(ax, idx, row)

    current = today()
    if min_date <= current <= max_date:
        ax.axvline(mdates.date2num(current), color=TODAY_COLOR, linewidth=1.0, linestyle="-", zorder=3)

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, format="svg", bbox_inches="tight")
    plt.close(fig)


def _draw_label(label_ax: plt.Axes, y: int, row: FlatRenderRow) -> None:
    text_weight = "bold" if row.kind == "phase" else "normal"
    indent = "    " * row.indent
    label_ax.text(
        0.98,
        y,
        f"{indent}{row.label}  {row.name}  ({row.date_label})",
        ha="right",
        va="center",
        fontsize=LABEL_FONT,
        fontweight=text_weight,
        transform=label_ax.transData,
    )


def _draw_bar(ax: plt.Axes, y: int, row: FlatRenderRow) -> None:
    if row.start_date is None or row.finish_date is None:
        return
    start_num = mdates.date2num(row.start_date)
    end_num = mdates.date2num(row.finish_date + dt.timedelta(days=1))
    width = max(0.0, end_num - start_num)
    height = PHASE_BAR_HEIGHT if row.kind == "phase" else ROW_HEIGHT
    ax.barh(
        y,
        width=width,
        left=start_num,
        height=height,
        color=row.color,
        alpha=row.alpha,
        edgecolor="black",
        linewidth=0.5,
    )
    if row.progress > 0:
        ax.barh(
            y,
            width=width * row.progress / 100.0,
            left=start_num,
            height=height / 3.0,
            color="black",
            alpha=0.35,
            linewidth=0,
        )


def _tool_version() -> str:
    try:
        return metadata.version("phase-planner")
    except Exception:
        return "0.0.0"


def _major_tick_strategy(span_days: int) -> tuple[mdates.DateLocator, mdates.DateFormatter]:
    """Choose a major tick locator/formatter to avoid overlapping labels."""
    if span_days > 180:
        return mdates.MonthLocator(interval=1), mdates.DateFormatter("%b %Y")
    if span_days > 90:
        return mdates.WeekdayLocator(byweekday=mdates.MO, interval=2), mdates.DateFormatter("%b %d")
    if span_days > 45:
        return mdates.WeekdayLocator(byweekday=mdates.MO, interval=1), mdates.DateFormatter("%b %d")
    return mdates.DayLocator(interval=2), mdates.DateFormatter("%b %d")
