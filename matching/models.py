from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

DEAL_STATUSES = ("open", "won", "lost")


class SuggestedAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    MERGE = "merge"
    SKIP = "skip"  # reserved


@dataclass
class DuplicateMatch:
    candidate_id: Any
    similarity: float
    match_reason: str
    matched_record: dict


@dataclass
class DeduplicationResult:
    is_duplicate: bool
    matches: list[DuplicateMatch] = field(default_factory=list)
    suggested_action: SuggestedAction = SuggestedAction.CREATE
    message: str = "No duplicates found"

    @property
    def strongest(self) -> DuplicateMatch | None:
        return self.matches[0] if self.matches else None

    def to_dict(self) -> dict:
        out = asdict(self)
        out["suggested_action"] = self.suggested_action.value
        return out


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass
class ContactCandidate:
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    role: str | None = None
    account_id: str | None = None
    tags: list[str] | None = None  # None: not supplied, column left out of the insert

    def __post_init__(self):
        if _blank(self.first_name) or _blank(self.last_name):
            raise ValueError("Contact requires first_name and last_name")
        self.first_name = self.first_name.strip()
        self.last_name = self.last_name.strip()

    def to_row(self) -> dict:
        row = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": None if _blank(self.email) else self.email.strip(),
            "phone": None if _blank(self.phone) else self.phone.strip(),
            "role": None if _blank(self.role) else self.role,
            "account_id": None if _blank(self.account_id) else self.account_id,
        }
        if self.tags is not None:
            row["tags"] = list(self.tags)
        return row


@dataclass
class DealCandidate:
    name: str
    account_id: str | None = None
    pipeline_id: str | None = None
    amount: float | None = None
    stage: str | None = None
    status: str = "open"
    close_date: str | None = None
    tags: list[str] | None = None

    def __post_init__(self):
        if _blank(self.name):
            raise ValueError("Deal requires a name")
        if self.status not in DEAL_STATUSES:
            raise ValueError(f"Deal status must be one of {', '.join(DEAL_STATUSES)}: {self.status!r}")
        self.name = self.name.strip()

    def to_row(self) -> dict:
        row = {
            "name": self.name,
            "account_id": None if _blank(self.account_id) else self.account_id,
            "pipeline_id": None if _blank(self.pipeline_id) else self.pipeline_id,
            "amount": None if self.amount is None else float(self.amount),
            "stage": None if _blank(self.stage) else self.stage,
            "status": self.status,
            "close_date": None if _blank(self.close_date) else self.close_date,
        }
        if self.tags is not None:
            row["tags"] = list(self.tags)
        return row


def display_name(record: dict) -> str:
    """'First Last' for contacts, the deal name for deals."""
    if record.get("name"):
        return str(record["name"])
    parts = [record.get("first_name"), record.get("last_name")]
    return " ".join(str(p) for p in parts if p)
