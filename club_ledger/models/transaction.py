"""
Core Data Models for Club Ledger

These models define the strict schemas for every movement recorded by
the system. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Stay immutable once created (only `status` ever changes)

DESIGN DECISION: A transaction is classified exactly once, when it is
created. Reducers read `type`, `origin` and `category` as stored and never
re-derive them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a movement. Amounts are always stored positive."""
    INCOME = "Ingreso"
    EXPENSE = "Gasto"


class Origin(str, Enum):
    """Which side of the ledger a movement belongs to."""
    BUSINESS = "Negocio"
    HOME = "Hogar"


class TransactionStatus(str, Enum):
    """
    Settlement status.

    PENDING marks a credit sale ("fiado") that has not been collected yet.
    It is only valid on INCOME records and only ever moves to PAID.
    """
    PAID = "paid"
    PENDING = "pending"


class BusinessActivity(str, Enum):
    """
    Entry tabs available when recording a business movement.

    Each tab maps to a fixed (type, category) pair, except OPERATING_EXPENSE
    which takes its category from the chosen expense sub-category.
    """
    CLIENT_CONSUMPTION = "Consumo Clientes"
    PRODUCT_SALE = "Venta Producto"
    INITIAL_INVENTORY = "Inventario Inicial"
    CARD_PAYMENT = "Pago Tarjeta"
    OPERATING_EXPENSE = "Gastos"
    INTERNAL_CONSUMPTION = "Consumo Propio"
    ROYALTY = "Regalías"


# =============================================================================
# CATEGORY VOCABULARY
# =============================================================================

CATEGORY_CLUB_CONSUMPTION = "Consumo en Club"
CATEGORY_PRODUCT_SALE = "Producto Cerrado"
CATEGORY_ROYALTIES = "Regalías"
CATEGORY_INTERNAL_CONSUMPTION = "Consumo Interno"
CATEGORY_CARD_PAYMENT = "Pago Tarjeta Crédito"
CATEGORY_INITIAL_INVENTORY = "Inventario Inicial"
CATEGORY_FAMILY_CONTRIBUTION = "Aporte Familiar"
CATEGORY_OTHER = "Otros"

# Categories that must carry a client name
CLIENT_CATEGORIES = frozenset({CATEGORY_CLUB_CONSUMPTION, CATEGORY_PRODUCT_SALE})

# Household members who can consume club inventory
CONSUMERS = ("Amarilis", "Luis", "Hijos", "Invitados")

BUSINESS_EXPENSE_CATEGORIES = (
    "Arriendo Local",
    "Servicios",
    "Insumos",
    "Transporte",
    "Mantenimiento",
    CATEGORY_OTHER,
)

HOME_CATEGORIES = (
    "Arriendo",
    "Servicios",
    "Comida",
    "Transporte",
    "Ocio",
    CATEGORY_FAMILY_CONTRIBUTION,
    CATEGORY_OTHER,
)


def to_local_naive(value: datetime) -> datetime:
    """
    Drop the offset of an aware datetime, converting it to local time first.

    Every stored date is naive local time, so window bounds and record
    dates always compare.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# =============================================================================
# ENTRY SELECTION - what the authoring surface hands us
# =============================================================================

class EntrySelection(BaseModel):
    """
    Raw entry as chosen by the user, before classification.

    `amount` is kept as typed (string or number) because parsing it is
    part of validation, not of the schema.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    origin: Origin
    activity: Optional[BusinessActivity] = Field(
        default=None,
        description="Business entry tab (business origin only)"
    )
    expense_category: Optional[str] = Field(
        default=None,
        description="Sub-category for an operating expense"
    )
    home_category: Optional[str] = Field(
        default=None,
        description="Household category (household origin only)"
    )
    amount: Union[str, Decimal, None] = None
    note: str = ""
    client: Optional[str] = None
    consumer: Optional[str] = None
    is_credit_sale: bool = Field(
        default=False,
        description="Sale made on credit (fiado), to be collected later"
    )
    date: datetime = Field(
        ...,
        description="Date the movement is booked on (may be in the past)"
    )
    user_id: str = Field(..., min_length=1)

    @field_validator("date")
    @classmethod
    def local_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A classified movement that has not been stored yet.

    CRITICAL: Drafts are only built by the classification rules after the
    entry passed validation. The store assigns the id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        ge=0,
        description="Magnitude of the movement; sign implied by type"
    )
    type: TransactionType
    origin: Origin
    category: str = Field(..., min_length=1, max_length=100)
    status: TransactionStatus = TransactionStatus.PAID
    date: datetime
    note: str = ""
    client: Optional[str] = None
    consumer: Optional[str] = None
    user_id: str = Field(..., min_length=1)

    @field_validator("client", "consumer")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Stores hand back empty cells as empty strings."""
        return v or None

    @field_validator("date")
    @classmethod
    def local_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @model_validator(mode="after")
    def validate_invariants(self):
        """Check the relationships between status, category and attribution."""
        if (
            self.status == TransactionStatus.PENDING
            and self.type != TransactionType.INCOME
        ):
            raise ValueError("Only income can be pending")

        if self.consumer and self.category != CATEGORY_INTERNAL_CONSUMPTION:
            raise ValueError(
                f"Consumer is only allowed on '{CATEGORY_INTERNAL_CONSUMPTION}'"
            )

        if self.client and self.category not in CLIENT_CATEGORIES:
            raise ValueError(
                f"Client is not allowed on category '{self.category}'"
            )

        return self

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING


class Transaction(TransactionDraft):
    """A stored movement."""

    id: str = Field(..., min_length=1, description="Store-assigned id")


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on an entry."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage entry validation.

    Stage 1: Schema validation (amount parses, vocabulary is known)
    Stage 2: Business rules (client names, "Otros" notes)
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    schema_valid: bool
    rules_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and self.rules_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
