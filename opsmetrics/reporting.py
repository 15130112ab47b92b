"""Export tables and console reports for shift and setter metrics.

Column sets and formula texts here are what end users see; keep them in step
with the calculators.
"""

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from opsmetrics.domains.setup.models import SetterPeriodSummary, SetterSummaryTotals
from opsmetrics.domains.setup.repeats import DEFAULT_WINDOW_HOURS
from opsmetrics.utils.io import write_output
from opsmetrics.utils.types import DateRange

type ReportFormat = str  # "table" | "json" | "summary"


def formulas(window_hours: float = DEFAULT_WINDOW_HOURS) -> dict[str, str]:
    """Formula texts shown to users, with the configured repeat window."""
    return {
        "shift_duration": "Shift Duration = Shift End − Shift Start",
        "runtime": "Runtime = Gross Time − Downtime",
        "target": "Target = Runtime × 60 ÷ Cycle Time",
        "efficiency": "Efficiency % = Actual ÷ Target × 100",
        "setup_duration": "Setup Duration = setup_end_time − setup_start_time",
        "approval_delay": "Approval Delay = first_piece_approval_time − setup_end_time",
        "repeat_setup": f"Repeat Setup = same item+WO within {window_hours:g}h window",
        "efficiency_score": "Efficiency Score = Avg Setup Time + (Avg Delay × 0.5) + (Repeat % × 10)",
    }


FORMULAS = formulas()

SHIFT_EXPORT_COLUMNS = {
    "plant_id": "Plant",
    "shift": "Shift",
    "machine_id": "Machine",
    "actual_runtime_minutes": "Runtime (min)",
    "effective_target_quantity": "Target",
    "actual_quantity": "Actual",
    "total_rejection_quantity": "Rejected",
    "ok_quantity": "OK Qty",
    "efficiency_percentage": "Efficiency %",
}

SETTER_EXPORT_COLUMNS = {
    "setter_name": "Setter Name",
    "total_setups": "Total Setups",
    "avg_setup_duration_minutes": "Avg Setup Time (min)",
    "min_setup_duration_minutes": "Min Setup Time (min)",
    "max_setup_duration_minutes": "Max Setup Time (min)",
    "repeat_setup_count": "Repeat Setups",
    "avg_approval_delay_minutes": "Avg Approval Delay (min)",
    "max_approval_delay_minutes": "Max Approval Delay (min)",
    "efficiency_score": "Efficiency Score",
}

_BAND_STYLES = {
    "excellent": "green",
    "good": "blue",
    "average": "yellow",
    "needs_improvement": "red",
}


def shift_export_frame(shift_metrics: pd.DataFrame) -> pd.DataFrame:
    """Select and label the shift columns exported to users."""
    if shift_metrics.empty:
        return pd.DataFrame(columns=list(SHIFT_EXPORT_COLUMNS.values()))
    return shift_metrics[list(SHIFT_EXPORT_COLUMNS)].rename(columns=SHIFT_EXPORT_COLUMNS)


def setter_export_frame(summaries: list[SetterPeriodSummary]) -> pd.DataFrame:
    rows = []
    for s in summaries:
        row = {key: getattr(s, key) for key in SETTER_EXPORT_COLUMNS}
        for key in ("avg_setup_duration_minutes", "avg_approval_delay_minutes"):
            if row[key] is not None:
                row[key] = round(row[key], 1)
        rows.append(row)
    return pd.DataFrame(rows, columns=list(SETTER_EXPORT_COLUMNS)).rename(columns=SETTER_EXPORT_COLUMNS)


def export_filename(kind: str, date_range: DateRange, fmt: str = "csv") -> str:
    return f"{kind}-{date_range.start.isoformat()}-to-{date_range.end.isoformat()}.{fmt}"


def export_report(frame: pd.DataFrame, output_dir: Path, kind: str, date_range: DateRange, fmt: str = "csv") -> Path:
    """Write an export table to ``output_dir`` using the standard file name."""
    return write_output(frame, Path(output_dir) / export_filename(kind, date_range, fmt), fmt)


def _fmt(value) -> str:
    match value:
        case None:
            return "-"
        case float() if pd.isna(value):
            return "-"
        case float():
            return f"{value:.2f}".rstrip("0").rstrip(".")
        case _:
            return str(value)


def setter_table(summaries: list[SetterPeriodSummary], title: str = "Setter Efficiency") -> Table:
    table = Table(title=title, caption="Ranked by efficiency score (lower is better)")
    table.add_column("#", justify="right")
    for header in SETTER_EXPORT_COLUMNS.values():
        table.add_column(header, justify="left" if header == "Setter Name" else "right")
    table.add_column("Band")

    for s in summaries:
        style = _BAND_STYLES.get(s.efficiency_band, "white")
        table.add_row(
            str(s.rank),
            *(_fmt(getattr(s, key)) for key in SETTER_EXPORT_COLUMNS),
            f"[{style}]{s.efficiency_band.replace('_', ' ')}[/{style}]",
        )
    return table


def shift_table(shift_metrics: pd.DataFrame, title: str = "Shift Efficiency") -> Table:
    table = Table(title=title)
    for header in SHIFT_EXPORT_COLUMNS.values():
        table.add_column(header, justify="left" if header in ("Plant", "Shift", "Machine") else "right")

    for row in shift_export_frame(shift_metrics).itertuples(index=False):
        table.add_row(*(_fmt(value) for value in row))
    return table


def _totals_to_json(totals: SetterSummaryTotals) -> dict:
    return {
        "total_setups": totals.total_setups,
        "avg_setup_duration": totals.avg_setup_duration,
        "avg_approval_delay": totals.avg_approval_delay,
        "total_repeat_setups": totals.total_repeat_setups,
        "setter_count": totals.setter_count,
        "best_performer": totals.best_performer,
        "worst_performer": totals.worst_performer,
    }


def build_setter_report(
    summaries: list[SetterPeriodSummary],
    totals: SetterSummaryTotals,
    date_range: DateRange,
    output_format: ReportFormat = "table",
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> str:
    match output_format:
        case "json":
            report = {
                "generated_at": datetime.now().isoformat(),
                "date_range": {"start": date_range.start.isoformat(), "end": date_range.end.isoformat()},
                "totals": _totals_to_json(totals),
                "setters": setter_export_frame(summaries).to_dict(orient="records"),
                "formulas": formulas(window_hours),
            }
            return json.dumps(report, indent=2, default=str)
        case "summary":
            lines = [
                f"[{date_range.start} to {date_range.end}] {totals.total_setups} setups, "
                f"{totals.setter_count} setters, {totals.total_repeat_setups} repeats"
            ]
            for s in summaries:
                lines.append(f"  {s.rank}. {s.setter_name}: score {s.efficiency_score} ({s.efficiency_band})")
            if totals.best_performer:
                lines.append(f"  Best performer: {totals.best_performer}")
            return "\n".join(lines)
        case _:
            return _capture(setter_table(summaries, title=f"Setter Efficiency {date_range.start} to {date_range.end}"))


def _capture(table: Table) -> str:
    buf = Console(force_terminal=False, width=240)
    with buf.capture() as capture:
        buf.print(table)
    return capture.get()
