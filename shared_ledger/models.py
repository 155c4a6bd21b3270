from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Closed set of apportionment modes. Stored values are free strings
# ("shared4", "shared5", ... are written by the expense form), so parse()
# folds every N-way value into SHARED.
class ShareType(str, Enum):
    PERSONAL = "personal"
    SHARED2 = "shared2"
    SHARED3 = "shared3"
    SHARED = "shared"
    BELONGS_TO_OTHER = "belongs_to_other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ShareType":
        if not value:
            return cls.PERSONAL
        try:
            return cls(value)
        except ValueError:
            # Any other stored value is split among owner + shared_with
            return cls.SHARED


# This model represents a family/personal expense row
class Expense(BaseModel):
    id: str
    description: str = ""
    total_amount: float
    installments: int = 1
    current_installment: int = 1
    # Month of the first installment; stored as "month" in the expenses table
    first_charge_month: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("first_charge_month", "month")
    )
    date: Optional[str] = None
    owner: str = ""
    user_id: Optional[str] = None
    share_type: Optional[str] = ShareType.PERSONAL.value
    # JSON text, a list, or a bare name depending on when the row was written
    shared_with: Optional[Union[List[str], str]] = None
    status: Optional[str] = None
    category: Optional[str] = None
    payment_method: Optional[str] = None
    card: Optional[str] = None

    @field_validator("installments", "current_installment", mode="before")
    def default_to_one(cls, v):
        return 1 if v in (None, "") else v

    @property
    def mode(self) -> ShareType:
        return ShareType.parse(self.share_type)

    @property
    def record_month(self) -> Optional[str]:
        """Month the record itself is dated in ("YYYY-MM")."""
        return self.date[:7] if self.date else None

    @property
    def first_month(self) -> Optional[str]:
        return self.first_charge_month or self.record_month


# This model represents a family member as seen by the current viewer
class Participant(BaseModel):
    name: str  # display label, e.g. "Yo" for the viewer
    real_name: Optional[str] = None  # name stored on expense rows
    member_id: Optional[str] = None  # account id, matches Expense.user_id
    email: Optional[str] = None
    id: Optional[str] = None

    @property
    def canonical(self) -> str:
        return self.real_name or self.name


# One expense as it is billed in a given month
class MonthlyCharge(BaseModel):
    expense: Expense
    installment: int
    amount: float
    carried_over: bool = False


# A suggested transfer; serialised as {"from", "to", "amount"}
class Settlement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payer: str = Field(alias="from")
    payee: str = Field(alias="to")
    amount: float


class UnresolvedName(BaseModel):
    expense_id: str
    name: str


# Output of the family balance solver; keys are canonical identities
class BalanceReport(BaseModel):
    owed: Dict[str, float] = {}
    paid: Dict[str, float] = {}
    balances: Dict[str, float] = {}
    settlements: List[Settlement] = []
    total: float = 0.0
    unassigned: float = 0.0
    display_names: Dict[str, str] = {}
    unresolved: List[UnresolvedName] = []


# Event-group participant (free-text name unique within the group)
class GroupParticipant(BaseModel):
    id: Optional[str] = None
    group_id: Optional[str] = None
    name: str


# Event-group expense: no installments, equal split among split_with
class GroupExpense(BaseModel):
    id: Optional[str] = None
    group_id: Optional[str] = None
    description: str = ""
    amount: float
    paid_by: str
    split_with: List[str] = []

    @field_validator("split_with", mode="before")
    def parse_split_with(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            from shared_ledger.identity import parse_name_list
            return parse_name_list(v)
        return v


class GroupReport(BaseModel):
    balances: Dict[str, float] = {}
    settlements: List[Settlement] = []
    total: float = 0.0


# Result of removing a participant from a group ledger
class ParticipantRemoval(BaseModel):
    updated: List[GroupExpense] = []
    deleted: List[str] = []


# This model validates the financial health request body
class HealthRequest(BaseModel):
    income: float
    # Computed from the stored month when omitted
    personal_total: Optional[float] = None
    family_share: Optional[float] = None


class HealthReport(BaseModel):
    income: float
    personal: float
    family_share: float
    total_expenses: float
    free_margin: float
    personal_pct: float
    family_pct: float
    is_critical: bool
