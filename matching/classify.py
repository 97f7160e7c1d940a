# matching/classify.py
from matching.models import DeduplicationResult, DuplicateMatch, SuggestedAction

CONTACT = "contact"
DEAL = "deal"

# entity -> (merge threshold, update threshold)
THRESHOLDS: dict[str, tuple[float, float]] = {
    CONTACT: (0.9, 0.7),
    DEAL: (0.9, 0.8),
}


def sort_matches(matches: list[DuplicateMatch]) -> list[DuplicateMatch]:
    # stable: equal scores keep the order the passes produced them in
    return sorted(matches, key=lambda m: m.similarity, reverse=True)


def classify_matches(matches: list[DuplicateMatch], entity: str) -> DeduplicationResult:
    if not matches:
        return DeduplicationResult(
            is_duplicate=False,
            matches=[],
            suggested_action=SuggestedAction.CREATE,
            message="No duplicates found",
        )

    ordered = sort_matches(matches)
    strongest = ordered[0]
    merge_at, update_at = THRESHOLDS[entity]

    if strongest.similarity >= merge_at:
        action = SuggestedAction.MERGE
        message = (f"Strong duplicate detected: {strongest.match_reason}. "
                   f"Consider merging or updating existing {entity}.")
    elif strongest.similarity >= update_at:
        action = SuggestedAction.UPDATE
        message = (f"Possible duplicate detected: {strongest.match_reason}. "
                   "Please review before creating.")
    else:
        action = SuggestedAction.CREATE
        message = (f"Potential duplicate detected: {strongest.match_reason}. "
                   "Please verify before creating.")

    return DeduplicationResult(
        is_duplicate=True,
        matches=ordered,
        suggested_action=action,
        message=message,
    )
