"""Shift production records, derived metrics, and pandera frame schemas."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

import pandera.pandas as pa
from pandera.pandas import Column, Check


class DowntimeCategory(StrEnum):
    MATERIAL = "Material"
    MACHINE = "Machine"
    POWER = "Power"
    QC = "QC"
    OPERATOR = "Operator"
    TOOLING = "Tooling"
    OTHER = "Other"


class DowntimeReason(StrEnum):
    MATERIAL_NOT_AVAILABLE = "Material Not Available"
    MATERIAL_SHORTAGE = "Material Shortage"
    MACHINE_BREAKDOWN = "Machine Breakdown"
    MACHINE_MAINTENANCE = "Machine Maintenance"
    MACHINE_CALIBRATION = "Machine Calibration"
    NO_POWER = "No Power"
    POWER_FLUCTUATION = "Power Fluctuation"
    QUALITY_PROBLEM = "Quality Problem"
    QC_HOLD = "QC Hold"
    FIRST_PIECE_APPROVAL = "First Piece Approval"
    NO_OPERATOR = "No Operator"
    TOOL_CHANGE = "Tool Change"
    TOOL_DAMAGE = "Tool Damage"
    JOB_SETTING = "Job Setting"
    PROGRAM_UPLOAD = "Program Upload"
    OTHER = "Other"


class RejectionCause(StrEnum):
    DENT = "dent"
    DIMENSION = "dimension"
    FACE_NOT_OK = "face_not_ok"
    FORGING_MARK = "forging_mark"
    LINING = "lining"
    MATERIAL_NOT_OK = "material_not_ok"
    PREVIOUS_SETUP_FAULT = "previous_setup_fault"
    SCRATCH = "scratch"
    SETTING = "setting"
    TOOL_MARK = "tool_mark"

    @property
    def label(self) -> str:
        return REJECTION_LABELS[self]


REJECTION_LABELS = {
    RejectionCause.DENT: "Dent",
    RejectionCause.DIMENSION: "Dimension",
    RejectionCause.FACE_NOT_OK: "Face Not OK",
    RejectionCause.FORGING_MARK: "Forging Mark",
    RejectionCause.LINING: "Lining",
    RejectionCause.MATERIAL_NOT_OK: "Material Not OK",
    RejectionCause.PREVIOUS_SETUP_FAULT: "Previous Setup Fault",
    RejectionCause.SCRATCH: "Scratch",
    RejectionCause.SETTING: "Setting",
    RejectionCause.TOOL_MARK: "Tool Mark",
}


@dataclass(frozen=True)
class DowntimeEvent:
    reason: DowntimeReason
    duration_minutes: int
    remark: str | None = None


@dataclass(frozen=True)
class TargetOverride:
    value: int
    reason: str
    approved_by: str
    actor_role: str | None = None


@dataclass(frozen=True)
class ShiftProductionInput:
    plant_id: str
    shift: str
    machine_id: str
    setup_number: str
    shift_start_time: str
    shift_end_time: str
    actual_quantity: int = 0
    rework_quantity: int = 0
    downtime_events: tuple[DowntimeEvent, ...] = ()
    rejection_breakdown: Mapping[RejectionCause, int] = field(default_factory=dict)
    cycle_time_seconds: float | None = None
    target_override: TargetOverride | None = None
    record_id: str | None = None
    log_date: date | None = None
    operator_id: str | None = None


@dataclass(frozen=True)
class DerivedShiftMetrics:
    shift_duration_minutes: int
    total_downtime_minutes: int
    actual_runtime_minutes: int
    calculated_target_quantity: int
    effective_target_quantity: int
    total_rejection_quantity: int
    ok_quantity: int
    efficiency_percentage: float
    override_applied: bool = False


ShiftMetricsSchema = pa.DataFrameSchema(
    columns={
        "plant_id": Column(str, nullable=False),
        "shift": Column(str, nullable=False),
        "machine_id": Column(str, nullable=False),
        "shift_duration_minutes": Column(int, Check.in_range(0, 1440)),
        "total_downtime_minutes": Column(int, Check.greater_than_or_equal_to(0)),
        "actual_runtime_minutes": Column(int, Check.greater_than_or_equal_to(0)),
        "calculated_target_quantity": Column(int, Check.greater_than_or_equal_to(0)),
        "effective_target_quantity": Column(int, Check.greater_than_or_equal_to(0)),
        "actual_quantity": Column(int, Check.greater_than_or_equal_to(0)),
        "total_rejection_quantity": Column(int, Check.greater_than_or_equal_to(0)),
        "ok_quantity": Column(int, Check.greater_than_or_equal_to(0)),
        "efficiency_percentage": Column(float, Check.greater_than_or_equal_to(0)),
    },
    checks=[
        Check(
            lambda df: df["actual_runtime_minutes"] <= df["shift_duration_minutes"],
            error="runtime exceeds shift duration",
        ),
    ],
    coerce=True,
    strict=False,
)
