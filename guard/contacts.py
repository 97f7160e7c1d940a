from guard.common import WriteResult, guarded_create, update_record
from matching.finder import check_duplicate_contact
from matching.models import ContactCandidate
from store.base import Store
from store.schema import CONTACTS

CONTACT_UPDATABLE = {"first_name", "last_name", "email", "phone", "role", "account_id", "tags"}


def create_contact(store: Store, candidate: ContactCandidate) -> WriteResult:
    """
    Create a contact unless it already exists.

    Raises DuplicateConflict for a strong match (same email or phone), or when
    the store rejects the insert as a duplicate and a re-check finds the
    competing record. Other store failures surface as StoreError.
    """
    return guarded_create(store, CONTACTS, "contact", candidate, check_duplicate_contact)


def update_contact(store: Store, contact_id, changes: dict) -> WriteResult:
    unknown = set(changes) - CONTACT_UPDATABLE
    if unknown:
        raise ValueError(f"Unknown contact field(s): {', '.join(sorted(unknown))}")
    return update_record(store, CONTACTS, "contact", contact_id, changes)
