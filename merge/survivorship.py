import math

CONTACT_FIELDS = ["first_name", "last_name", "email", "phone", "role", "account_id"]
DEAL_FIELDS = ["name", "account_id", "pipeline_id", "stage", "status", "close_date"]


def _missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def prefer_target(target: dict, source: dict, field: str):
    """Target wins whenever it holds a value; the source only fills gaps."""
    value = target.get(field)
    return source.get(field) if _missing(value) else value


def union_tags(target_tags, source_tags) -> list:
    """Target's tags first, then any new ones from the source."""
    merged = []
    for tag in list(target_tags or []) + list(source_tags or []):
        if tag not in merged:
            merged.append(tag)
    return merged


def sum_amounts(target_amount, source_amount):
    if _missing(target_amount):
        return None if _missing(source_amount) else float(source_amount)
    if _missing(source_amount):
        return float(target_amount)
    return float(target_amount) + float(source_amount)


def merge_contact_records(target: dict, source: dict, merged_at: str) -> dict:
    merged = {"id": target["id"]}
    for field in CONTACT_FIELDS:
        merged[field] = prefer_target(target, source, field)
    merged["tags"] = union_tags(target.get("tags"), source.get("tags"))
    merged["updated_at"] = merged_at
    return merged


def merge_deal_records(target: dict, source: dict, merged_at: str) -> dict:
    # Two deals folded into one carry their combined pipeline value.
    merged = {"id": target["id"]}
    for field in DEAL_FIELDS:
        merged[field] = prefer_target(target, source, field)
    merged["amount"] = sum_amounts(target.get("amount"), source.get("amount"))
    merged["tags"] = union_tags(target.get("tags"), source.get("tags"))
    merged["updated_at"] = merged_at
    return merged
