# matching/finder.py
import logging

from matching.classify import CONTACT, DEAL, classify_matches
from matching.models import (
    ContactCandidate,
    DealCandidate,
    DeduplicationResult,
    DuplicateMatch,
)
from matching.normalize import matchable_phone, name_key, normalize_email, normalize_phone
from store.base import ILike, NotNull, Store
from store.schema import CONTACTS, DEALS

logger = logging.getLogger(__name__)

EMAIL_SCORE = 1.0
PHONE_SCORE = 0.9
NAME_ACCOUNT_SCORE = 0.7

DEAL_NAME_SCORE = 0.8
DEAL_NAME_ACCOUNT_SCORE = 0.95
DEAL_STAGE_BONUS = 0.05


class _MatchList:
    """Matches keyed by record id; the first pass to claim a record keeps it."""

    def __init__(self):
        self.matches: list[DuplicateMatch] = []
        self._seen = set()

    def add(self, record: dict, similarity: float, reason: str):
        if record["id"] in self._seen:
            return
        self._seen.add(record["id"])
        self.matches.append(DuplicateMatch(
            candidate_id=record["id"],
            similarity=similarity,
            match_reason=reason,
            matched_record=record,
        ))


# --------- CONTACTS ---------
def _email_pass(store: Store, email: str, found: _MatchList):
    rows = store.select(CONTACTS, NotNull("email"))
    for row in rows:
        if normalize_email(row.get("email")) == email:
            found.add(row, EMAIL_SCORE, "Exact email match")
    logger.debug("email pass: %d rows scanned", len(rows))


def _phone_pass(store: Store, phone: str, found: _MatchList):
    rows = store.select(CONTACTS, NotNull("phone"))
    for row in rows:
        if normalize_phone(row.get("phone")) == phone:
            found.add(row, PHONE_SCORE, "Exact phone match")
    logger.debug("phone pass: %d rows scanned", len(rows))


def _same_account(stored, wanted) -> bool:
    if wanted:
        return stored == wanted
    return not stored


def _name_pass(store: Store, candidate: ContactCandidate, found: _MatchList):
    first, last = name_key(candidate.first_name), name_key(candidate.last_name)
    rows = store.select(
        CONTACTS,
        ILike("first_name", candidate.first_name.strip()),
        ILike("last_name", candidate.last_name.strip()),
    )
    for row in rows:
        if name_key(row.get("first_name")) != first or name_key(row.get("last_name")) != last:
            continue
        if _same_account(row.get("account_id"), candidate.account_id):
            found.add(row, NAME_ACCOUNT_SCORE, "Name and account match")


def find_contact_matches(store: Store, candidate: ContactCandidate) -> list[DuplicateMatch]:
    """
    1) Exact email (normalized, compared in process)
    2) Exact phone (digits only, 10+ digits)
    3) First + last name via ILIKE, re-checked exactly, same or both-null account
    Returns: matches, strongest first
    """
    found = _MatchList()

    email = normalize_email(candidate.email)
    if email:
        _email_pass(store, email, found)

    phone = matchable_phone(candidate.phone)
    if phone:
        _phone_pass(store, phone, found)

    if candidate.first_name and candidate.last_name:
        _name_pass(store, candidate, found)

    return found.matches


def check_duplicate_contact(store: Store, candidate: ContactCandidate) -> DeduplicationResult:
    return classify_matches(find_contact_matches(store, candidate), CONTACT)


# --------- DEALS ---------
def score_deal(candidate: DealCandidate, stored: dict) -> tuple[float, str]:
    similarity, reason = DEAL_NAME_SCORE, "Exact name match"
    if candidate.account_id and stored.get("account_id") == candidate.account_id:
        similarity, reason = DEAL_NAME_ACCOUNT_SCORE, "Exact name and account match"
    if candidate.stage and stored.get("stage") == candidate.stage:
        similarity = min(1.0, similarity + DEAL_STAGE_BONUS)
        reason += " with same stage"
    return round(similarity, 2), reason


def find_deal_matches(store: Store, candidate: DealCandidate) -> list[DuplicateMatch]:
    found = _MatchList()
    wanted = name_key(candidate.name)
    if not wanted:
        return found.matches

    for row in store.select(DEALS, ILike("name", candidate.name.strip())):
        if name_key(row.get("name")) != wanted:
            continue
        similarity, reason = score_deal(candidate, row)
        found.add(row, similarity, reason)
    return found.matches


def check_duplicate_deal(store: Store, candidate: DealCandidate) -> DeduplicationResult:
    return classify_matches(find_deal_matches(store, candidate), DEAL)
