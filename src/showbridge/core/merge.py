"""Field-level merge engine for contract and backend records.

Hybrid views combine one CanonicalRecord from each source. Which value wins
is decided per field by the MergePolicy; structural fields (``id`` and
``start_time``) always come from the contract record, which is authoritative
for identity.
"""

from typing import Any

from showbridge.core.models import CanonicalRecord, FieldMergeMode, MergePolicy, Scope

LIST_MERGE_FIELDS: tuple[str, ...] = ("name", "description", "location")

DETAIL_MERGE_FIELDS: tuple[str, ...] = LIST_MERGE_FIELDS + (
    "ticket_price",
    "max_tickets",
    "sold_tickets",
    "organizer",
    "is_active",
    "status",
    "metadata_uri",
)

MERGE_FIELDS: dict[str, tuple[str, ...]] = {
    "list": LIST_MERGE_FIELDS,
    "detail": DETAIL_MERGE_FIELDS,
}

# Policy maps are keyed by the camelCase names used in config documents
POLICY_FIELD_NAMES: dict[str, str] = {
    "name": "name",
    "description": "description",
    "location": "location",
    "ticket_price": "ticketPrice",
    "max_tickets": "maxTickets",
    "sold_tickets": "soldTickets",
    "organizer": "organizer",
    "is_active": "isActive",
    "status": "status",
    "metadata_uri": "metadataURI",
}


def _has_value(value: Any) -> bool:
    return value is not None and value != ""


def resolve_mode(field_name: str, scope: Scope, policy: MergePolicy) -> FieldMergeMode:
    """Effective mode for a field, accepting snake_case or camelCase names."""
    overrides = policy.list_fields if scope == "list" else policy.detail_fields
    if field_name in overrides:
        return overrides[field_name]
    policy_name = POLICY_FIELD_NAMES.get(field_name)
    if policy_name is not None and policy_name in overrides:
        return overrides[policy_name]
    return policy.default_mode


def merge_field(
    field_name: str,
    scope: Scope,
    contract_value: Any,
    backend_value: Any,
    policy: MergePolicy,
) -> Any:
    """Combine one field from both sources according to the policy.

    Args:
        field_name: Canonical field name (snake_case or the camelCase policy key)
        scope: "list" or "detail"; selects which override map applies
        contract_value: Value from the contract record
        backend_value: Value from the backend record
        policy: Merge policy to apply

    Returns:
        The merged value.

    Note:
        PREFER_* modes treat None and "" as absent. COALESCE only treats None
        as absent, so an empty string or zero from the backend wins.
    """
    mode = resolve_mode(field_name, scope, policy)
    if mode is FieldMergeMode.PREFER_CONTRACT:
        return contract_value if _has_value(contract_value) else backend_value
    if mode is FieldMergeMode.PREFER_BACKEND:
        return backend_value if _has_value(backend_value) else contract_value
    return backend_value if backend_value is not None else contract_value


def merge_record(
    contract: CanonicalRecord,
    backend: CanonicalRecord | None,
    scope: Scope,
    policy: MergePolicy,
) -> CanonicalRecord:
    """Merge a contract record with its backend counterpart.

    Mergeable fields for the scope go through merge_field; every other field
    is copied from the contract record. Without a backend record the contract
    record is returned field-for-field, whatever the policy says.

    The result is a pure function of the inputs: identical arguments give
    equal output.
    """
    if backend is None:
        return contract

    updates = {
        field_name: merge_field(
            field_name,
            scope,
            getattr(contract, field_name),
            getattr(backend, field_name),
            policy,
        )
        for field_name in MERGE_FIELDS[scope]
    }
    return contract.model_copy(update=updates)
