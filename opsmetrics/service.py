"""Single metrics service shared by every report, dashboard and export.

Shift efficiency always comes from shift production records and setter
efficiency always comes from setup activity records, each derived by one
module, so two consumers can never disagree on the same number.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from opsmetrics import domains
from opsmetrics.config import MetricsConfig, load_metrics_config
from opsmetrics.domains.setup.models import SetupActivityInput
from opsmetrics.domains.shift.models import DerivedShiftMetrics, ShiftProductionInput
from opsmetrics.domains.shift.transform import find_duplicate_shifts
from opsmetrics.utils.types import MetricsQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricsService:
    config: MetricsConfig = field(default_factory=load_metrics_config)

    def evaluate_shift(self, shift: ShiftProductionInput) -> DerivedShiftMetrics:
        """Validate one shift submission and derive its metrics.

        Raises ShiftValidationError when the submission is malformed.
        """
        domains.shift.ensure_valid_shift(shift)
        return domains.shift.compute_shift_metrics(shift, self.config.override_roles)

    def shift_report(self, shifts: Iterable[ShiftProductionInput], query: MetricsQuery) -> dict:
        selected = [s for s in shifts if self._matches_shift(s, query)]

        valid, rejected = [], []
        for shift in selected:
            result = domains.shift.validate_shift_submission(shift)
            if result["valid"]:
                valid.append(shift)
            else:
                rejected.append(shift.record_id)
                logger.warning(f"Skipping invalid shift {shift.record_id}: {result['errors']}")

        report = domains.shift.run(
            valid, query.date_range, self.config.override_roles, self.config.default_shift_minutes
        )

        duplicates = find_duplicate_shifts(report["shift_metrics"])
        if not duplicates.empty:
            logger.warning(f"{len(duplicates)} shift records share a machine/shift/setup/date key")
        report["duplicates"] = duplicates
        report["rejected_records"] = rejected
        if query.period is not None:
            report["by_period"] = domains.shift.summarize_shifts(
                report["shift_metrics"],
                by="period",
                period=query.period,
                paid_minutes=self.config.default_shift_minutes,
            )
        return report

    def setter_report(self, setups: Iterable[SetupActivityInput], query: MetricsQuery) -> dict:
        # Repeat faults need every setup for an item/work order, so the setter
        # and machine filters apply only after repeat detection.
        evaluated = domains.setup.evaluate_setups(setups, self.config.repeat_window_hours)
        selected = [
            (setup, metrics)
            for setup, metrics in evaluated
            if (query.setter_id is None or setup.setter_id == query.setter_id)
            and (query.machine_id is None or setup.machine_id == query.machine_id)
        ]

        setters = domains.setup.aggregate_setters(selected, query.date_range, self.config.score_bands)
        if setters:
            domains.setup.validate(domains.setup.summaries_to_frame(setters), "setters")
        report = {
            "setup_records": [
                (setup, metrics) for setup, metrics in selected if query.date_range.contains(setup.setup_date)
            ],
            "setters": setters,
            "totals": domains.setup.summarize_totals(setters),
        }
        if query.period is not None:
            report["periods"] = domains.setup.summarize_by_period(
                selected, query.period, query.date_range, self.config.score_bands
            )
        return report

    @staticmethod
    def _matches_shift(shift: ShiftProductionInput, query: MetricsQuery) -> bool:
        if query.machine_id is not None and shift.machine_id != query.machine_id:
            return False
        if query.shift is not None and shift.shift != query.shift:
            return False
        return True
