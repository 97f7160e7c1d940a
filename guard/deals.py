from guard.common import WriteResult, guarded_create, update_record
from matching.finder import check_duplicate_deal
from matching.models import DEAL_STATUSES, DealCandidate
from store.base import Store
from store.schema import DEALS

DEAL_UPDATABLE = {"name", "account_id", "pipeline_id", "amount", "stage", "status", "close_date", "tags"}


def create_deal(store: Store, candidate: DealCandidate) -> WriteResult:
    """Create a deal unless one with the same name (and account) already exists."""
    return guarded_create(store, DEALS, "deal", candidate, check_duplicate_deal)


def update_deal(store: Store, deal_id, changes: dict) -> WriteResult:
    unknown = set(changes) - DEAL_UPDATABLE
    if unknown:
        raise ValueError(f"Unknown deal field(s): {', '.join(sorted(unknown))}")
    if "status" in changes and changes["status"] not in DEAL_STATUSES:
        raise ValueError(f"Deal status must be one of {', '.join(DEAL_STATUSES)}")
    return update_record(store, DEALS, "deal", deal_id, changes)
