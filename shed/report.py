from __future__ import annotations

"""
SHED report generator
---------------------
Turns a `PipelineResult` into the two answers the analysis exists for:

1) Which event types are most harmful to population health?
   -> fatalities and injuries, side by side
2) Which event types have the greatest economic consequences?
   -> property and crop damage (US$), side by side

Outputs:
- PNG charts (two pairs of horizontal bar charts) via matplotlib
- a DOCX report (charts, ranked tables, conclusions) via python-docx
- CSV / JSON exports of the full per-category totals

Report dependencies are imported lazily so the pipeline runs without them.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import csv
import json
import math
import os
import tempfile

import numpy as np
import pandas as pd

from .dsa import merge_sort
from .engine import _rank_key
from .errors import InvalidArgumentError
from .models import (
    CROP_DAMAGE, FATALITIES, INJURIES, METRICS, PROPERTY_DAMAGE, RankedList,
)


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "NOAA Storm Events Database"
    institutional_author: str = "NOAA National Centers for Environmental Information"
    location: str = "Asheville, NC, USA"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    file_name: Optional[str] = None
    file_note: Optional[str] = "Course copy of the storm database (1950-2011), bzip2-compressed CSV."


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Storm Events: Health and Economic Impact by Event Type"
    subtitle: str = "Storm Health & Economic Damage (SHED)"
    citation: DatasetCitation = field(default_factory=DatasetCitation)
    chart_dpi: int = 200
    # Optional: the command line that produced the run
    command_log: Optional[List[str]] = None


METRIC_LABELS = {
    FATALITIES: "Fatalities",
    INJURIES: "Injuries",
    PROPERTY_DAMAGE: "Property damage (US$)",
    CROP_DAMAGE: "Crop damage (US$)",
}


@dataclass
class ChartSpec:
    """One horizontal bar chart: ranked values plus axis metadata."""
    ranked: RankedList
    title: str
    xlabel: str
    # None -> derived from the largest value
    xmax: Optional[float] = None


# -----------------------------
# Number helpers
# -----------------------------

def nice_axis_max(values: Sequence[float]) -> float:
    """Round the largest value up (with ~5% headroom) to a half step of its decade."""
    arr = np.asarray([v for v in values if v is not None and math.isfinite(v)], dtype=float)
    if arr.size == 0 or arr.max() <= 0:
        return 1.0
    top = float(arr.max()) * 1.05
    step = 10 ** math.floor(math.log10(top)) / 2
    return float(np.ceil(top / step) * step)


def format_dollars(v: float) -> str:
    """Readable US$ amount, e.g. $144.66 billion."""
    for scale, word in ((1e9, "billion"), (1e6, "million"), (1e3, "thousand")):
        if abs(v) >= scale:
            return f"${v / scale:,.2f} {word}"
    return f"${v:,.0f}"


def format_value(metric: str, v: float) -> str:
    if metric in (PROPERTY_DAMAGE, CROP_DAMAGE):
        return format_dollars(v)
    return f"{v:,.0f}"


# -----------------------------
# Charts
# -----------------------------

def build_chart_specs(result) -> List[Tuple[ChartSpec, ChartSpec]]:
    """Return the (health, economic) chart pairs for a pipeline result."""
    n = result.n

    def spec(metric: str) -> ChartSpec:
        ranked = result.ranking(metric)
        return ChartSpec(
            ranked=ranked,
            title=f"Top {n} event types by {METRIC_LABELS[metric].split(' (')[0].lower()}",
            xlabel=METRIC_LABELS[metric],
            xmax=nice_axis_max([v for _, v in ranked]),
        )

    return [
        (spec(FATALITIES), spec(INJURIES)),
        (spec(PROPERTY_DAMAGE), spec(CROP_DAMAGE)),
    ]


def render_chart_pair(
    left: ChartSpec,
    right: ChartSpec,
    out_path: str,
    *,
    suptitle: Optional[str] = None,
    dpi: int = 200,
) -> str:
    """Draw two horizontal bar charts side by side and save them as PNG."""
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e

    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    for ax, spec, color in zip(axes, (left, right), ("#d95f02", "#1b9e77")):
        labels = [c for c, _ in spec.ranked]
        values = [v for _, v in spec.ranked]
        y = np.arange(len(labels))
        ax.barh(y, values, color=color)
        ax.set_yticks(y)
        ax.set_yticklabels(labels)
        ax.invert_yaxis()  # largest on top
        xmax = spec.xmax if spec.xmax is not None else nice_axis_max(values)
        ax.set_xlim(0, xmax)
        ax.set_title(spec.title)
        ax.set_xlabel(spec.xlabel)

    if suptitle:
        fig.suptitle(suptitle)
    fig.tight_layout()
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
    return out_path


# -----------------------------
# Narrative
# -----------------------------

def economic_ranking(result) -> RankedList:
    """Categories ranked by property + crop damage combined."""
    pairs = [
        (cat, t.property_damage_dollars + t.crop_damage_dollars)
        for cat, t in result.totals.items()
    ]
    return merge_sort(pairs, key=_rank_key, reverse=True)[:result.n]


def write_conclusions(result) -> List[str]:
    """Plain-language answers to the two questions, one paragraph each."""
    if not result.totals:
        return ["No records were available, so no event type can be ranked."]

    def lead(metric: str) -> str:
        cat, v = result.ranking(metric)[0]
        return f"{cat} ({format_value(metric, v)})"

    health = (
        "Across the United States, the event type most harmful to population health "
        f"is {lead(FATALITIES)} by fatalities, while the most injuries are caused by "
        f"{lead(INJURIES)}."
    )
    combined_cat, combined_v = economic_ranking(result)[0]
    economic = (
        f"The greatest property damage is caused by {lead(PROPERTY_DAMAGE)} and the "
        f"greatest crop damage by {lead(CROP_DAMAGE)}. Counting both together, "
        f"{combined_cat} has the greatest economic consequences ({format_dollars(combined_v)})."
    )
    caveat = (
        "Event type labels are used as recorded. Variant spellings of the same "
        "phenomenon (for example TSTM WIND and THUNDERSTORM WIND) are counted "
        "separately, so some totals are split across several labels."
    )
    return [health, economic, caveat]


# -----------------------------
# Tabular exports
# -----------------------------

_COLUMNS = ["category"] + list(METRICS)


def totals_frame(totals) -> pd.DataFrame:
    """Per-category totals as a DataFrame, in first-seen order."""
    return pd.DataFrame([t.as_dict() for t in totals.values()], columns=_COLUMNS)


def export_totals_csv(totals, path: str) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(_COLUMNS)
        for t in totals.values():
            d = t.as_dict()
            w.writerow([d[c] for c in _COLUMNS])


def export_totals_json(totals, path: str) -> None:
    """Export per-category totals as a JSON list of objects."""
    payload = [t.as_dict() for t in totals.values()]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


# -----------------------------
# Main entry point used by CLI
# -----------------------------

def generate_docx_report(result, out_path: str, *, config: Optional[ReportConfig] = None) -> str:
    """
    Generate a DOCX report with charts, ranked tables and conclusions.
    """
    config = config or ReportConfig()

    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    if not result.totals:
        raise InvalidArgumentError("No records to report on (all rows were skipped or the table is empty).")

    # -----------------------------
    # 1) Charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="shed_report_")
    health_pair, economic_pair = build_chart_specs(result)
    health_png = render_chart_pair(
        *health_pair, os.path.join(tmpdir, "health.png"),
        suptitle="Population health", dpi=config.chart_dpi,
    )
    economic_png = render_chart_pair(
        *economic_pair, os.path.join(tmpdir, "economic.png"),
        suptitle="Economic consequences", dpi=config.chart_dpi,
    )

    # -----------------------------
    # 2) Document
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _ranked_table(metric: str) -> None:
        doc.add_paragraph(f"Top {result.n} event types by {METRIC_LABELS[metric]}")
        t = doc.add_table(rows=1, cols=3)
        h = t.rows[0].cells
        h[0].text = "Rank"
        h[1].text = "Event type"
        h[2].text = METRIC_LABELS[metric]
        for i, (cat, v) in enumerate(result.ranking(metric), start=1):
            r = t.add_row().cells
            r[0].text = str(i)
            r[1].text = cat
            r[2].text = format_value(metric, v)
        doc.add_paragraph("")

    _center_title(config.title, 20, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_heading("Synopsis", level=1)
    for para in write_conclusions(result)[:2]:
        doc.add_paragraph(para)

    doc.add_heading("Data processing", level=1)
    _kv("Rows read", f"{result.records_in:,}")
    _kv("Rows used", f"{result.records_used:,}")
    _kv("Rows skipped (unreadable values)", f"{result.skipped:,}")
    _kv("Distinct event types", f"{len(result.totals):,}")
    doc.add_paragraph(
        "Damage is recorded as a magnitude plus a scale letter. K, M and B "
        "(any case) multiply by one thousand, one million and one billion; "
        "any other code is taken as plain dollars. Sums are computed per "
        "event type label exactly as recorded."
    )

    cit = config.citation
    doc.add_heading("Dataset citation", level=1)
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    if cit.file_note:
        doc.add_paragraph(f"File note: {cit.file_note}")
    doc.add_paragraph(f"{cit.institutional_author}. {cit.database_name}. {cit.location}. {cit.website}.")

    doc.add_heading("Results", level=1)
    doc.add_heading("Population health", level=2)
    doc.add_picture(health_png, width=Inches(6.5))
    _ranked_table(FATALITIES)
    _ranked_table(INJURIES)

    doc.add_heading("Economic consequences", level=2)
    doc.add_picture(economic_png, width=Inches(6.5))
    _ranked_table(PROPERTY_DAMAGE)
    _ranked_table(CROP_DAMAGE)

    doc.add_heading("Conclusions", level=1)
    for para in write_conclusions(result):
        doc.add_paragraph(para)

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    from . import __version__ as shed_version
    from datetime import datetime as _dt

    doc.add_heading("Reproducibility footer", level=1)
    doc.add_paragraph(f"SHED version: {shed_version}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
    doc.add_paragraph(f"Top-N used for every metric: {result.n}")
    if config.command_log:
        doc.add_paragraph("Command used:")
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
