import datetime as dt
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import TransactionType


def new_transaction_id() -> str:
    return str(uuid.uuid4())


def _stripped_category(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("category must be non-empty")
    return v


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_transaction_id, min_length=1)
    date: dt.date
    type: TransactionType
    category: str
    amount: float = Field(..., allow_inf_nan=False)
    note: str = ""

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        return _stripped_category(v)

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()

    @property
    def month_key(self) -> str:
        return self.iso_date[:7]

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.expense


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, max_length=64)
    date: dt.date
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    note: str = Field(default="", max_length=500)

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        return _stripped_category(v)


class TransactionPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[dt.date] = None
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: Optional[str]) -> Optional[str]:
        return _stripped_category(v)

    @field_validator("note")
    @classmethod
    def _note_stripped(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None


class BackupPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int = 1
    exported_at: datetime = Field(alias="exportedAt")
    transactions: list[Transaction]


class ImportSummary(BaseModel):
    parsed: int
    added: int
    skipped: int
    errors: list[str] = Field(default_factory=list)


class InsightSource(str, Enum):
    remote = "remote"
    local = "local"
    fallback = "fallback"


class InsightResult(BaseModel):
    data: list[str]
    source: InsightSource
    error: Optional[str] = None
    duration_ms: Optional[float] = None

    def bands(self) -> dict[str, list[str]]:
        return {
            "overview": self.data[:4],
            "alerts": self.data[4:8],
            "suggestions": self.data[8:],
        }
