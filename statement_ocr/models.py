# models.py
from __future__ import annotations

import calendar
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Optional, Dict, Any

from statement_ocr.constants import UNCATEGORIZED


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


# pending -> processing -> {completed, error}; terminals never move again
_ALLOWED_TRANSITIONS = {
    DocumentStatus.PENDING: {DocumentStatus.PROCESSING},
    DocumentStatus.PROCESSING: {DocumentStatus.COMPLETED, DocumentStatus.ERROR},
    DocumentStatus.COMPLETED: set(),
    DocumentStatus.ERROR: set(),
}


@dataclass(frozen=True)
class StatementPeriod:
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(f"Statement period starts after it ends: {self.start_date} > {self.end_date}")

    @classmethod
    def month_of(cls, d: date) -> "StatementPeriod":
        """Whole calendar month containing d (used for filename date hints)."""
        last_day = calendar.monthrange(d.year, d.month)[1]
        return cls(date(d.year, d.month, 1), date(d.year, d.month, last_day))

    @property
    def spans_year_boundary(self) -> bool:
        return self.start_date.year != self.end_date.year

    def contains(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date

    def to_dict(self) -> Dict[str, str]:
        return {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "StatementPeriod":
        return cls(date.fromisoformat(data["start_date"]), date.fromisoformat(data["end_date"]))


@dataclass
class ExtractedTransaction:
    """
    Candidate transaction produced by the line extractor and refined in place
    by the normalisation, classification and finalisation stages.
    Amount is signed: negative is money out.
    """
    date: date
    amount: float
    description: str
    type: TransactionType = TransactionType.EXPENSE
    category: str = UNCATEGORIZED
    is_summary_line: bool = False
    account_number_suffix: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        d["type"] = self.type.value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedTransaction":
        return cls(
            date=date.fromisoformat(data["date"]),
            amount=float(data["amount"]),
            description=data.get("description") or "",
            type=TransactionType(data.get("type", "expense")),
            category=data.get("category") or UNCATEGORIZED,
            is_summary_line=bool(data.get("is_summary_line", False)),
            account_number_suffix=data.get("account_number_suffix"),
        )


@dataclass
class Document:
    id: str
    content_hash: str
    name: str
    upload_timestamp: datetime = field(default_factory=datetime.now)
    status: DocumentStatus = DocumentStatus.PENDING
    error: Optional[str] = None
    transaction_count: Optional[int] = None
    statement_period: Optional[StatementPeriod] = None
    document_date: Optional[date] = None

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def _move_to(self, status: DocumentStatus) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Illegal document transition {self.status.value} -> {status.value} ({self.id})")
        self.status = status

    def start_processing(self) -> None:
        self._move_to(DocumentStatus.PROCESSING)

    def complete(self, transaction_count: int) -> None:
        self._move_to(DocumentStatus.COMPLETED)
        self.transaction_count = transaction_count

    def fail(self, message: str) -> None:
        self._move_to(DocumentStatus.ERROR)
        self.error = message

    # ----------------------------
    # Serialisation
    # ----------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content_hash": self.content_hash,
            "name": self.name,
            "upload_timestamp": self.upload_timestamp.isoformat(),
            "status": self.status.value,
            "error": self.error,
            "transaction_count": self.transaction_count,
            "statement_period": self.statement_period.to_dict() if self.statement_period else None,
            "document_date": self.document_date.isoformat() if self.document_date else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        period = data.get("statement_period")
        doc_date = data.get("document_date")
        return cls(
            id=data["id"],
            content_hash=data["content_hash"],
            name=data.get("name") or "",
            upload_timestamp=datetime.fromisoformat(data["upload_timestamp"]),
            status=DocumentStatus(data.get("status", "pending")),
            error=data.get("error"),
            transaction_count=data.get("transaction_count"),
            statement_period=StatementPeriod.from_dict(period) if period else None,
            document_date=date.fromisoformat(doc_date) if doc_date else None,
        )


@dataclass
class DocumentResult:
    """Per-document outcome reported by queue processing."""
    name: str
    status: DocumentStatus
    transaction_count: int = 0
    error: Optional[str] = None
    duplicate: bool = False
    document_id: Optional[str] = None
