"""
Dashboard Query Executor

DESIGN DECISION: Report building is DETERMINISTIC and storage-free.
The orchestrator loads a snapshot; this executor only filters and reduces
it. Presentation code formats what comes back and never recomputes.

Every call is a fresh reduction over the snapshot it is handed, so a
settled credit sale shows up in the very next report.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from club_ledger.engine import (
    FAMILY_COST_RATIO,
    aggregate_business,
    aggregate_household,
    bucketize,
    daily_cash,
    filter_window,
    is_same_day,
    window_bounds,
    window_label,
)
from club_ledger.engine.window import MONTH_ABBREVIATIONS, as_datetime
from club_ledger.models.indicators import (
    DashboardReport,
    LedgerSnapshot,
    SidebarMetric,
    TimeWindow,
)
from club_ledger.models.transaction import Origin


class QueryExecutor:
    """
    Builds indicator reports from ledger snapshots.

    GUARANTEES:
    - Only reports figures derived from the snapshot
    - Never reads storage
    - Empty windows give zero-valued indicators, not errors
    """

    def __init__(self, family_cost_ratio: Optional[Decimal] = None):
        self._family_cost_ratio = (
            FAMILY_COST_RATIO if family_cost_ratio is None else family_cost_ratio
        )

    def dashboard(
        self,
        snapshot: LedgerSnapshot,
        reference: Union[date, datetime],
        window: TimeWindow,
    ) -> DashboardReport:
        """Business, household and trend figures for one window."""
        start, end = window_bounds(reference, window)
        in_window = filter_window(snapshot, reference, window)

        business = aggregate_business(in_window, self._family_cost_ratio)
        household = aggregate_household(in_window)

        return DashboardReport(
            user_id=snapshot.user_id,
            window=window,
            reference=as_datetime(reference),
            start=start,
            end=end,
            label=window_label(reference, window),
            record_count=len(in_window),
            business=business,
            household=household,
            trend=bucketize(in_window, window),
            description=self._describe(window, start, end, len(in_window)),
        )

    def sidebar_metric(
        self,
        snapshot: LedgerSnapshot,
        origin: Origin,
        day: Union[date, datetime],
        today: Optional[date] = None,
    ) -> SidebarMetric:
        """
        Headline figure for the entry screen.

        Business: cash moved on `day`.
        Household: cost of living for the month containing `day`.
        """
        day = as_datetime(day)
        month_label = MONTH_ABBREVIATIONS[day.month - 1]

        if origin == Origin.BUSINESS:
            amount = daily_cash(snapshot, day)
            if is_same_day(day, today or date.today()):
                title = "Caja Negocio (Hoy)"
            else:
                title = f"Caja del {day.day} {month_label}"
            return SidebarMetric(
                title=title,
                amount=amount,
                description="Efectivo real: ventas - gastos - tarjetas (sin inventario ni pendientes).",
                flagged=amount < 0,
            )

        household = aggregate_household(filter_window(snapshot, day, TimeWindow.MONTH))
        return SidebarMetric(
            title=f"Costo Vida ({month_label})",
            amount=household.cost_of_living,
            description="Gastos - aportes (acumulado mensual).",
            flagged=household.is_surplus,
        )

    def _describe(
        self,
        window: TimeWindow,
        start: datetime,
        end: datetime,
        record_count: int,
    ) -> str:
        """Format what was aggregated, for logs and empty states."""
        if window == TimeWindow.DAY:
            span = f"on {start.strftime('%d %b %Y')}"
        elif window == TimeWindow.MONTH:
            span = f"in {start.strftime('%B %Y')}"
        else:
            span = f"from {start.strftime('%b %Y')} to {end.strftime('%b %Y')}"
        return f"Aggregated {record_count} transactions {span}"
