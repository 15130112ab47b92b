"""Command-line runner: derive shift and setter metrics from exported records."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.table import Table

from opsmetrics import domains, reporting
from opsmetrics.config import get_env_config, load_metrics_config
from opsmetrics.service import MetricsService
from opsmetrics.utils.periods import resolve_period_range
from opsmetrics.utils.types import DateRange, MetricsQuery, Period
from opsmetrics.utils.validators import validate_dataframe

console = Console()


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date: {value}") from exc


def build_query(args: argparse.Namespace) -> MetricsQuery:
    period = Period(args.period) if args.period else None
    match (args.start, args.end, period):
        case (None, None, None):
            date_range = DateRange(date.today(), date.today())
        case (None, None, p):
            date_range = resolve_period_range(p, date.today())
        case (start, None, p) if p is not None:
            date_range = resolve_period_range(p, start)
        case (None, end, p) if p is not None:
            date_range = resolve_period_range(p, end)
        case (start, end, _):
            date_range = DateRange(start or end, end or start)
    return MetricsQuery(
        date_range=date_range,
        machine_id=args.machine,
        setter_id=args.setter,
        shift=args.shift,
        period=period,
    )


def validate_shifts(path: Path, service: MetricsService) -> bool:
    shifts = domains.shift.load_shift_records(path)
    table = Table(title="Shift Validation Results")
    table.add_column("Record")
    table.add_column("Valid")
    table.add_column("Details")

    all_valid = True
    valid = []
    for shift in shifts:
        result = domains.shift.validate_shift_submission(shift)
        status = "[green]✓[/green]" if result["valid"] else "[red]✗[/red]"
        table.add_row(str(shift.record_id), status, "; ".join(result["errors"]) or "OK")
        all_valid = all_valid and result["valid"]
        if result["valid"]:
            valid.append(shift)

    console.print(table)

    if valid:
        frame = domains.shift.build_shift_frame(valid, service.config.override_roles)
        result = validate_dataframe(frame, domains.shift.ShiftMetricsSchema)
        for error in result["errors"]:
            console.print(f"  {error}", style="red", markup=False)
        all_valid = all_valid and result["valid"]
    return all_valid


def run_shifts(path: Path, service: MetricsService, query: MetricsQuery, output: Path | None) -> None:
    report = service.shift_report(domains.shift.load_shift_records(path), query)
    console.print(reporting.shift_table(report["shift_metrics"]))

    totals = report["totals"]
    console.print(
        f"[bold]{totals['log_count']} shifts[/bold]: output {totals['total_output']}, "
        f"target {totals['total_target']}, rejections {totals['total_rejections']}, "
        f"avg efficiency {totals['overall_efficiency']}%"
    )
    if report["rejected_records"]:
        console.print(f"[yellow]Skipped invalid records: {report['rejected_records']}[/yellow]")

    if output is not None:
        export = reporting.shift_export_frame(report["shift_metrics"])
        reporting.export_report(export, output, "shift-efficiency", query.date_range)
        reporting.export_report(report["downtime_pareto"], output, "downtime-pareto", query.date_range)


def run_setups(path: Path, service: MetricsService, query: MetricsQuery, output: Path | None) -> None:
    report = service.setter_report(domains.setup.load_setup_records(path), query)
    date_range = query.date_range
    console.print(reporting.setter_table(report["setters"], title=f"Setter Efficiency {date_range.start} to {date_range.end}"))
    console.print(
        reporting.build_setter_report(report["setters"], report["totals"], date_range, "summary"),
        markup=False,
    )

    for bucket, summaries in report.get("periods", {}).items():
        console.print(reporting.setter_table(summaries, title=f"{query.period} from {bucket}"))

    if output is not None:
        export = reporting.setter_export_frame(report["setters"])
        reporting.export_report(export, output, "setter-efficiency", query.date_range)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Derive shift and setter performance metrics")
    parser.add_argument("--shifts", type=Path, help="Shift production records (csv/json/dir)")
    parser.add_argument("--setups", type=Path, help="Setup activity records (csv/json/dir)")
    parser.add_argument("--start", type=_parse_date, help="First day of the range (YYYY-MM-DD)")
    parser.add_argument("--end", type=_parse_date, help="Last day of the range (YYYY-MM-DD)")
    parser.add_argument("--period", choices=[p.value for p in Period], help="Daily/weekly/monthly buckets")
    parser.add_argument("--machine", type=str, help="Only this machine")
    parser.add_argument("--setter", type=str, help="Only this setter")
    parser.add_argument("--shift", type=str, help="Only this shift label")
    parser.add_argument("--env", type=str, default="production", help="Config environment")
    parser.add_argument("--output", type=Path, help="Directory for CSV exports")
    parser.add_argument("--validate", action="store_true", help="Only validate shift records")
    parser.add_argument("--formulas", action="store_true", help="Print the calculation formulas")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = load_metrics_config(args.env, overrides=get_env_config())
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    if args.formulas:
        for text in reporting.formulas(config.repeat_window_hours).values():
            console.print(text)
        return 0

    if not args.shifts and not args.setups:
        console.print("[red]Nothing to do: pass --shifts and/or --setups[/red]")
        return 1

    service = MetricsService(config=config)

    if args.validate:
        if not args.shifts:
            console.print("[red]--validate needs --shifts[/red]")
            return 1
        return 0 if validate_shifts(args.shifts, service) else 1

    query = build_query(args)
    if args.shifts:
        run_shifts(args.shifts, service, query, args.output)
    if args.setups:
        run_setups(args.setups, service, query, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
