"""
Indicator Models

Results produced by the aggregation engine. Every value here is derived
from a record set on demand; none of it is ever persisted.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from club_ledger.models.transaction import Origin, Transaction


ZERO = Decimal("0")


class TimeWindow(str, Enum):
    """Calendar unit the dashboard is looking at."""
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class LedgerSnapshot(BaseModel):
    """
    One owner's record set as loaded from storage.

    The engine only ever sees snapshots. The store owns the only mutable
    copy of the data; a new snapshot is loaded after every change.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    records: tuple[Transaction, ...] = ()
    loaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __iter__(self) -> Iterator[Transaction]:  # type: ignore[override]
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def by_origin(self, origin: Origin) -> tuple[Transaction, ...]:
        return tuple(t for t in self.records if t.origin == origin)

    def find(self, transaction_id: str) -> Optional[Transaction]:
        for record in self.records:
            if record.id == transaction_id:
                return record
        return None


class BusinessIndicators(BaseModel):
    """
    Business-side figures for one window.

    `operating_expense` holds ordinary costs only (no internal consumption,
    no card payments). `charted_expense` is the wider population plotted on
    trend charts, which includes card payments.
    """
    model_config = ConfigDict(frozen=True)

    sales_paid: Decimal = ZERO
    pending: Decimal = ZERO
    royalties: Decimal = ZERO
    operating_expense: Decimal = ZERO
    charted_expense: Decimal = ZERO
    card_payments: Decimal = ZERO
    initial_inventory: Decimal = ZERO
    family_consumption: Decimal = ZERO
    family_breakdown: dict[str, Decimal] = Field(default_factory=dict)
    family_cost: Decimal = ZERO
    net_profit: Decimal = ZERO

    def family_breakdown_chart(self) -> list[tuple[str, Decimal]]:
        """Consumers with a non-zero share, in vocabulary order."""
        return [
            (consumer, amount)
            for consumer, amount in self.family_breakdown.items()
            if amount > 0
        ]


class HouseholdIndicators(BaseModel):
    """Household figures for one window."""
    model_config = ConfigDict(frozen=True)

    contributions: Decimal = ZERO
    expenses: Decimal = ZERO
    cost_of_living: Decimal = ZERO

    @property
    def is_surplus(self) -> bool:
        """More was contributed than spent."""
        return self.cost_of_living < 0


class PeriodBucket(BaseModel):
    """One point of a sales/expenses trend series."""

    label: str
    start: datetime = Field(
        ...,
        description="Start of the sub-period, used for ordering"
    )
    sales: Decimal = ZERO
    expenses: Decimal = ZERO


class DashboardReport(BaseModel):
    """
    Everything the dashboard needs for one window.

    Built by the query executor from a snapshot; the presentation layer
    formats it and never recomputes anything.
    """

    user_id: str
    window: TimeWindow
    reference: datetime
    start: datetime
    end: datetime
    label: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    record_count: int = Field(ge=0)
    business: BusinessIndicators
    household: HouseholdIndicators
    trend: list[PeriodBucket] = Field(default_factory=list)

    description: str = Field(
        ...,
        description="Human-readable description of what was aggregated"
    )

    @property
    def data_found(self) -> bool:
        return self.record_count > 0


class SidebarMetric(BaseModel):
    """Single headline figure shown next to the entry form."""

    title: str
    amount: Decimal
    description: str
    flagged: bool = Field(
        default=False,
        description="Value needs attention (negative cash, household surplus)"
    )
