import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from config import get_settings
from export_pdf import export, validate_payload
from generate_data import PROFILES, generate_sample_payload, write_sample
from metrics import summary_rows
from rules import BORDERLINE, NORMAL, OUTLIER

logger = logging.getLogger(__name__)

STATUS_STYLES = {NORMAL: "green", BORDERLINE: "yellow", OUTLIER: "red"}


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # matplotlib/PIL are chatty at DEBUG
    for name in ("matplotlib", "PIL"):
        logging.getLogger(name).setLevel(logging.WARNING)


def load_payload(path: Path) -> dict:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing payload file: {path}")

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Payload is not valid JSON ({path}): {e}") from e

    validate_payload(payload)
    return payload


def _make_kv_table(title: str, rows: list[tuple[str, str]]) -> Table:
    t = Table(title=title, show_lines=True)
    t.add_column("Field")
    t.add_column("Value", overflow="fold")
    for k, v in rows:
        t.add_row(k, v)
    return t


def _summary_table(payload: dict) -> Table:
    t = Table(title="Patient Health Report – Current Readings", show_lines=True)
    t.add_column("Metric")
    t.add_column("Current", justify="right", no_wrap=True)
    t.add_column("Average", justify="right", no_wrap=True)
    t.add_column("Status", no_wrap=True)
    for r in summary_rows(payload):
        style = STATUS_STYLES.get(r["status"])
        status = r["status"].capitalize() if style else "-"
        t.add_row(r["metric"], r["current"], r["average"], f"[{style}]{status}[/{style}]" if style else status)
    return t


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="health-report",
        description="Build a patient health PDF report from metric logs.",
    )
    parser.add_argument("payload", nargs="?", type=Path, help="JSON payload with patient and metric logs")
    parser.add_argument("--sample", action="store_true", help="use a generated sample payload")
    parser.add_argument("--profile", choices=PROFILES, default="HEALTHY", help="sample patient profile")
    parser.add_argument("--seed", type=int, default=42, help="sample random seed")
    parser.add_argument("--write-sample", type=Path, metavar="PATH", help="write a sample payload and exit")
    parser.add_argument("--days", type=int, help="timeframe in days (default from settings)")
    parser.add_argument("--output", type=Path, help="PDF output path")
    parser.add_argument("--charts-dir", type=Path, help="directory for rendered chart images")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    console = Console()
    settings = get_settings()
    days = args.days if args.days is not None else settings.timeframe_days

    try:
        if args.write_sample:
            write_sample(args.write_sample, days=days, seed=args.seed, profile=args.profile, tz=settings.timezone)
            return 0

        if args.sample:
            payload = generate_sample_payload(days=days, seed=args.seed, profile=args.profile, tz=settings.timezone)
        elif args.payload:
            payload = load_payload(args.payload)
        else:
            logger.error("No payload given (pass a JSON file or --sample)")
            return 1

        patient = payload["patient"]
        console.print(
            _make_kv_table(
                "Patient Health Report – Context",
                [
                    ("Patient", str(patient.get("name", "-"))),
                    ("Age", str(patient.get("age", "-"))),
                    ("Source", "sample" if args.sample else str(args.payload)),
                    ("Timeframe", f"Last {days} days"),
                    ("Timezone", settings.timezone),
                ],
            )
        )
        console.print()
        console.print(_summary_table(payload))
        console.print()

        path = export(payload, report_path=args.output, timeframe_days=days, charts_dir=args.charts_dir, settings=settings)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1

    console.print(f"PDF generated: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
