# src/export_pdf.py
from __future__ import annotations

import logging
from pathlib import Path
from xml.sax.saxutils import escape

import pandas as pd

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
    PageBreak,
    Image,
)

from PIL import Image as PILImage

from config import Settings, get_settings
from charts import (
    activity_chart,
    blood_glucose_chart,
    blood_pressure_chart,
    heart_rate_chart,
    hydration_chart,
    nutrition_chart,
    render_chart,
    steps_chart,
    temperature_chart,
    weight_chart,
)
from metrics import (
    DATE_FMT,
    activity_lines,
    blood_glucose_lines,
    blood_pressure_lines,
    heart_rate_lines,
    hydration_lines,
    nutrition_lines,
    steps_lines,
    summary_rows,
    temperature_lines,
    weight_lines,
)
from rules import BORDERLINE, NORMAL, OUTLIER

logger = logging.getLogger(__name__)

MARGIN = 50
HEADER_SPACE = 80

REQUIRED_KEYS = ["patient", "temperature", "heartRate"]
BENCHMARKED = ["temperature", "heartRate", "bloodPressure", "bloodGlucose"]

# Keys each vital's benchMark must carry
BENCHMARK_PATHS = {
    "temperature": ["normalRange.min", "normalRange.max"],
    "heartRate": ["min", "max"],
    "bloodPressure": ["systolic", "diastolic"],
    "bloodGlucose": ["beforeMeals", "afterMealsAndRandom"],
}

# (payload key, heading, stats lines, chart spec builder, always rendered)
SECTIONS = [
    ("temperature", "Body Temperature", temperature_lines, temperature_chart, True),
    ("heartRate", "Heart Rate", heart_rate_lines, heart_rate_chart, True),
    ("bloodPressure", "Blood Pressure", blood_pressure_lines, blood_pressure_chart, False),
    ("bloodGlucose", "Blood Glucose", blood_glucose_lines, blood_glucose_chart, False),
    ("nutrition", "Nutrition", nutrition_lines, nutrition_chart, False),
    ("hydration", "Water Intake", hydration_lines, hydration_chart, False),
    ("weight", "Weight", weight_lines, weight_chart, False),
    ("activity", "Activity", activity_lines, activity_chart, False),
    ("steps", "Step Count", steps_lines, steps_chart, False),
]

STATUS_BACKGROUNDS = {
    NORMAL: colors.Color(0.80, 0.93, 0.80),
    BORDERLINE: colors.Color(1.00, 0.96, 0.70),
    OUTLIER: colors.Color(1.00, 0.80, 0.80),
}


def validate_payload(payload: dict) -> None:
    if not isinstance(payload, dict):
        raise ValueError(f"Payload must be a JSON object, got {type(payload).__name__}")

    missing = [k for k in REQUIRED_KEYS if not payload.get(k)]
    if missing:
        raise ValueError(f"Payload is missing required section(s): {', '.join(missing)}")

    for key, *_ in SECTIONS:
        section = payload.get(key)
        if not section:
            continue
        if not isinstance(section.get("logs", []), list):
            raise ValueError(f"{key}.logs must be a list")
        if key in BENCHMARKED:
            bm = section.get("benchMark")
            if not isinstance(bm, dict) or not bm:
                raise ValueError(f"{key}.benchMark is required")
            for path in BENCHMARK_PATHS[key]:
                _require_path(bm, path, f"{key}.benchMark")


def _require_path(obj: dict, path: str, prefix: str) -> None:
    """
    Raise ValueError naming the first dotted key missing under obj.
    min/max leaves must be numbers, any other leaf a tier mapping.
    """
    node = obj
    walked = prefix
    for part in path.split("."):
        walked = f"{walked}.{part}"
        if not isinstance(node, dict) or node.get(part) is None:
            raise ValueError(f"{walked} is required")
        node = node[part]

    if part in ("min", "max"):
        if isinstance(node, bool) or not isinstance(node, (int, float)):
            raise ValueError(f"{walked} must be a number")
    elif not isinstance(node, dict):
        raise ValueError(f"{walked} must be an object")


def build_sections(payload: dict, timeframe_days: int, tz: str, now=None) -> list[dict]:
    """
    Text lines + chart spec for every section that should appear in the report.
    Optional sections are skipped when their input object is absent.
    """
    validate_payload(payload)

    sections = []
    for key, heading, lines_fn, chart_fn, required in SECTIONS:
        data = payload.get(key)
        if not data:
            if required:
                raise ValueError(f"Payload is missing required section: {key}")
            logger.debug("Skipping %s section (no data)", key)
            continue

        sections.append(
            {
                "key": key,
                "title": f"{heading} (Last {timeframe_days} days)",
                "lines": lines_fn(data, tz),
                "chart": chart_fn(data, timeframe_days, tz, now),
            }
        )
    return sections


def _wrap_table_cells(data, font_size=9, leading=11, wrap_cells=True):
    styles = getSampleStyleSheet()
    cell_style = ParagraphStyle(
        "CellWrap",
        parent=styles["BodyText"],
        fontSize=font_size,
        leading=leading,
        wordWrap="LTR",
        splitLongWords=False,
    )

    processed = []
    for r_i, row in enumerate(data):
        out_row = []
        for val in row:
            if val is None:
                val = ""
            s = str(val)

            # Header row stays plain strings
            if wrap_cells and r_i != 0 and len(s) > 24:
                out_row.append(Paragraph(escape(s), cell_style))
            else:
                out_row.append(s)
        processed.append(out_row)
    return processed


def make_table(data, doc_width, col_fracs, wrap_cells=True):
    total = sum(col_fracs) if col_fracs else 1.0
    col_widths = [doc_width * c / total for c in col_fracs]

    t = Table(
        _wrap_table_cells(data, wrap_cells=wrap_cells),
        colWidths=col_widths,
        hAlign="LEFT",
        repeatRows=1,
    )
    t.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),
                ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 1), (-1, -1), 9),
                ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 5),
                ("RIGHTPADDING", (0, 0), (-1, -1), 5),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return t


def apply_status_colors(table_obj, rows: list[dict], status_col: int = 3):
    """Traffic-light background on the Status column (row 0 is the header)."""
    styles = []
    for i, row in enumerate(rows, start=1):
        bg = STATUS_BACKGROUNDS.get(row["status"])
        if bg is not None:
            styles.append(("BACKGROUND", (status_col, i), (status_col, i), bg))
    if styles:
        table_obj.setStyle(TableStyle(styles))


def add_chart(story, img_path: Path, width):
    if not img_path.exists():
        logger.warning("Chart image missing, skipped: %s", img_path)
        return

    with PILImage.open(img_path) as im:
        w, h = im.size
    aspect = h / float(w)
    story.append(Image(str(img_path), width=width, height=width * aspect))


def _display_status(status: str) -> str:
    if status in STATUS_BACKGROUNDS:
        return status.capitalize()
    return "-"


def make_page_decorator(patient: dict, report_date: str, organisation: str, year: int):
    """Header (title, patient, report date) and copyright footer drawn on every page."""

    def draw(canvas, doc):
        page_w, page_h = doc.pagesize
        cx = page_w / 2.0

        canvas.saveState()
        canvas.setFont("Helvetica", 10)
        canvas.drawCentredString(cx, page_h - 30, "Patient Health Report")
        canvas.drawCentredString(cx, page_h - 45, f"Name: {patient.get('name', '-')} | Age: {patient.get('age', '-')}")
        canvas.drawCentredString(cx, page_h - 60, f"Report Date: {report_date}")

        canvas.setFont("Helvetica", 8)
        canvas.drawCentredString(cx, MARGIN - 20, f"© {year} {organisation}. All Rights Reserved.")
        canvas.restoreState()

    return draw


def build_story(
    payload: dict,
    sections: list[dict],
    chart_paths: dict,
    doc_width: float,
    report_date: str,
    timeframe_days: int,
    tz: str,
) -> list:
    styles = getSampleStyleSheet()
    h_style = ParagraphStyle("H", parent=styles["Heading2"], fontSize=16, alignment=1, spaceAfter=12)
    sub_style = ParagraphStyle("Sub", parent=styles["Heading3"], fontSize=12, spaceBefore=12, spaceAfter=6)
    body = ParagraphStyle("Body", parent=styles["BodyText"], fontSize=12, leading=18)
    note = ParagraphStyle("Note", parent=styles["BodyText"], fontSize=8.5, leading=11, textColor=colors.grey)

    patient = payload["patient"]
    story = []

    # Page 1: context + summary
    story.append(Paragraph("Health Summary", h_style))
    ctx = [
        ["Field", "Value"],
        ["Patient", str(patient.get("name", "-"))],
        ["Age", str(patient.get("age", "-"))],
        ["Report Date", report_date],
        ["Timeframe", f"Last {timeframe_days} days"],
        ["Timezone", tz],
    ]
    story.append(make_table(ctx, doc_width, col_fracs=[0.30, 0.70]))

    story.append(Spacer(1, 12))
    story.append(Paragraph("Current Readings", sub_style))

    rows = summary_rows(payload)
    summary = [["Metric", "Current", "Average", "Status"]]
    for r in rows:
        summary.append([r["metric"], r["current"], r["average"], _display_status(r["status"])])
    table = make_table(summary, doc_width, col_fracs=[0.40, 0.20, 0.20, 0.20], wrap_cells=False)
    apply_status_colors(table, rows)
    story.append(table)

    story.append(Spacer(1, 8))
    story.append(
        Paragraph(
            "Status compares the current reading with the metric's benchmark: "
            "Normal = within range, Borderline = just outside range, Outlier = beyond the borderline band.",
            note,
        )
    )

    # One page per metric
    for section in sections:
        story.append(PageBreak())
        story.append(Paragraph(section["title"], h_style))
        for line in section["lines"]:
            story.append(Paragraph(escape(line), body))
        story.append(Spacer(1, 12))

        p = chart_paths.get(section["key"])
        if p is not None:
            add_chart(story, p, doc_width)

    return story


def export(
    payload: dict,
    report_path: Path | None = None,
    timeframe_days: int | None = None,
    charts_dir: Path | None = None,
    settings: Settings | None = None,
    now: pd.Timestamp | None = None,
) -> Path:
    """Render every section chart and write the patient PDF report. Returns the PDF path."""
    settings = settings or get_settings()
    tz = settings.timezone
    if timeframe_days is None:
        timeframe_days = settings.timeframe_days

    if now is None:
        now = pd.Timestamp.now(tz=tz)
    elif now.tzinfo is None:
        now = now.tz_localize(tz)
    else:
        now = now.tz_convert(tz)

    if report_path is None:
        report_path = settings.output_dir / f"patient_report_{now.value // 1_000_000}.pdf"
    report_path = Path(report_path)
    charts_dir = Path(charts_dir) if charts_dir else settings.charts_dir

    report_path.parent.mkdir(parents=True, exist_ok=True)
    charts_dir.mkdir(parents=True, exist_ok=True)

    sections = build_sections(payload, timeframe_days, tz, now)

    chart_paths = {}
    for section in sections:
        chart_paths[section["key"]] = render_chart(
            section["chart"], charts_dir / f"chart_{section['key']}.png", settings
        )

    doc = SimpleDocTemplate(
        str(report_path),
        pagesize=A4,
        rightMargin=MARGIN,
        leftMargin=MARGIN,
        topMargin=HEADER_SPACE,
        bottomMargin=MARGIN,
        title="Patient Health Report",
    )

    report_date = now.strftime(DATE_FMT)
    story = build_story(payload, sections, chart_paths, doc.width, report_date, timeframe_days, tz)

    decorate = make_page_decorator(payload["patient"], report_date, settings.organisation, now.year)
    doc.build(story, onFirstPage=decorate, onLaterPages=decorate)

    logger.info("PDF generated: %s (%d sections)", report_path, len(sections))
    return report_path
