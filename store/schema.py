"""Tables, columns and references the dedupe core reads and writes."""

CONTACTS = "contacts"
DEALS = "deals"
INTERACTIONS = "interactions"

DEFAULT_SCHEMA: dict[str, list[str]] = {
    CONTACTS: [
        "id", "first_name", "last_name", "email", "phone", "role",
        "account_id", "tags", "created_at", "updated_at",
    ],
    DEALS: [
        "id", "name", "account_id", "pipeline_id", "amount", "stage",
        "status", "close_date", "tags", "created_at", "updated_at",
    ],
    INTERACTIONS: [
        "id", "type", "summary", "contact_id", "deal_id",
        "created_at", "updated_at",
    ],
}

# Columns that older deployments may lack; writes retry without them.
OPTIONAL_COLUMNS = ("tags",)

# table -> [(referencing table, referencing column)]
REFERENCES: dict[str, list[tuple[str, str]]] = {
    CONTACTS: [(INTERACTIONS, "contact_id")],
    DEALS: [(INTERACTIONS, "deal_id")],
}

LIST_COLUMNS = {"tags"}
NUMERIC_COLUMNS = {"amount"}
