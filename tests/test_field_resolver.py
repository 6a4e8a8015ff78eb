import pytest

from core.domain.errors import FieldError, FieldErrorKind
from core.domain.subtypes import FieldKind, Subtype
from core.services.field_resolver import FieldResolver, ResolvedField, list_node_name

HINT = "Type 'octane help' to review the syntax of supported commands."


@pytest.fixture
def resolver(catalog):
    return FieldResolver(catalog)


def test_critical_resolves_against_urgent(resolver):
    resolved = resolver.resolve(Subtype.DEFECT, "severity", "Critical")
    assert isinstance(resolved, ResolvedField)
    assert resolved.kind is FieldKind.LIST_NODE
    assert resolved.value.logical_name == "list_node.severity.urgent"
    assert resolved.value.as_reference() == {"type": "list_node", "id": "ln-2"}


def test_list_node_name():
    assert list_node_name("severity", " High ") == "list_node.severity.high"
    assert list_node_name("priority", "critical") == "list_node.priority.urgent"


def test_invalid_enum_lists_siblings_with_critical(resolver):
    error = resolver.resolve(Subtype.DEFECT, "severity", "blocker")
    assert isinstance(error, FieldError)
    assert error.kind is FieldErrorKind.INVALID_ENUM_VALUE
    assert error.alternatives == ["critical", "high", "medium", "low"]
    assert error.describe(HINT) == (
        "I can't do that because field severity does not support the value blocker. "
        "Try again using one of these values : critical,high,medium,low"
    )


def test_urgent_is_not_renamed_outside_severity(resolver):
    error = resolver.resolve(Subtype.FEATURE, "priority", "whenever")
    assert error.alternatives == ["urgent", "high"]


def test_unknown_field(resolver):
    error = resolver.resolve(Subtype.EPIC, "severity", "high")
    assert isinstance(error, FieldError)
    assert error.kind is FieldErrorKind.UNKNOWN_FIELD
    assert error.describe(HINT) == f"I can't do that because field severity does not exist. Try again. \n{HINT}"


def test_string_field_is_trimmed_and_case_insensitive(resolver):
    resolved = resolver.resolve(Subtype.USERSTORY, " Name ", "  Checkout page  ")
    assert resolved == ResolvedField(name="name", kind=FieldKind.STRING, value="Checkout page")


def test_parent_field_keeps_raw_id(resolver):
    resolved = resolver.resolve(Subtype.FEATURE, "epic", " 2001 ")
    assert resolved.kind is FieldKind.PARENT
    assert resolved.value == "2001"
    assert resolved.needs_parent_lookup


def test_resolution_does_not_mutate_catalog(resolver, catalog):
    before = catalog.list_nodes_under("list_node.severity")
    resolver.resolve(Subtype.DEFECT, "severity", "nope")
    resolver.resolve(Subtype.DEFECT, "severity", "critical")
    assert catalog.list_nodes_under("list_node.severity") == before


@pytest.mark.asyncio
async def test_resolve_parent_found(resolver):
    async def lookup(entity_id):
        return {"id": entity_id, "type": "work_item"}

    field = resolver.resolve(Subtype.FEATURE, "epic", "2001")
    resolved = await resolver.resolve_parent(field, lookup)
    assert resolved.value == {"id": "2001", "type": "work_item"}
    assert not resolved.needs_parent_lookup


@pytest.mark.asyncio
async def test_resolve_parent_missing(resolver):
    async def lookup(entity_id):
        return None

    error = await resolver.resolve_parent(resolver.resolve(Subtype.DEFECT, "feature", "42"), lookup)
    assert error.kind is FieldErrorKind.PARENT_NOT_FOUND
    assert error.describe(HINT) == "I can't find that parent. Try again with a different parent."


@pytest.mark.asyncio
async def test_non_numeric_parent_is_not_looked_up(resolver):
    looked_up = []

    async def lookup(entity_id):
        looked_up.append(entity_id)
        return {"id": entity_id}

    error = await resolver.resolve_parent(resolver.resolve(Subtype.DEFECT, "parent", "abc"), lookup)
    assert error.kind is FieldErrorKind.PARENT_NOT_FOUND
    assert looked_up == []
