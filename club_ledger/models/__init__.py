"""
Data Models Package

This package contains all Pydantic models used in Club Ledger.
All data flowing through the system must conform to these schemas.
"""

from club_ledger.models.transaction import (
    BUSINESS_EXPENSE_CATEGORIES,
    CATEGORY_CARD_PAYMENT,
    CATEGORY_CLUB_CONSUMPTION,
    CATEGORY_FAMILY_CONTRIBUTION,
    CATEGORY_INITIAL_INVENTORY,
    CATEGORY_INTERNAL_CONSUMPTION,
    CATEGORY_OTHER,
    CATEGORY_PRODUCT_SALE,
    CATEGORY_ROYALTIES,
    CLIENT_CATEGORIES,
    CONSUMERS,
    HOME_CATEGORIES,
    BusinessActivity,
    EntrySelection,
    Origin,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from club_ledger.models.indicators import (
    BusinessIndicators,
    DashboardReport,
    HouseholdIndicators,
    LedgerSnapshot,
    PeriodBucket,
    SidebarMetric,
    TimeWindow,
)
from club_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Vocabulary
    "BUSINESS_EXPENSE_CATEGORIES",
    "CATEGORY_CARD_PAYMENT",
    "CATEGORY_CLUB_CONSUMPTION",
    "CATEGORY_FAMILY_CONTRIBUTION",
    "CATEGORY_INITIAL_INVENTORY",
    "CATEGORY_INTERNAL_CONSUMPTION",
    "CATEGORY_OTHER",
    "CATEGORY_PRODUCT_SALE",
    "CATEGORY_ROYALTIES",
    "CLIENT_CATEGORIES",
    "CONSUMERS",
    "HOME_CATEGORIES",
    # Transaction models
    "BusinessActivity",
    "EntrySelection",
    "Origin",
    "Transaction",
    "TransactionDraft",
    "TransactionStatus",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Indicator models
    "BusinessIndicators",
    "DashboardReport",
    "HouseholdIndicators",
    "LedgerSnapshot",
    "PeriodBucket",
    "SidebarMetric",
    "TimeWindow",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
