import pytest

from libefris.errors import UnknownInterfaceError
from libefris.schemas.interfaces import DESCRIPTORS
from libefris.schemas.registry import SchemaRegistry, default_registry
from libefris.schemas.rules import Direction, ObjectSchema, SchemaDescriptor, text

EXPECTED_INTERFACES = [
    "T101",
    "T104",
    "T108",
    "T109",
    "T110",
    "T115",
    "T123",
    "T125",
    "T129",
    "T130",
    "T131",
    "T186",
    "T187",
]


def test_default_registry_holds_both_directions_of_every_interface():
    registry = default_registry()
    assert registry.interfaces() == EXPECTED_INTERFACES
    assert len(registry) == 2 * len(EXPECTED_INTERFACES)
    for code in EXPECTED_INTERFACES:
        assert (code, "request") in registry
        assert (code, Direction.RESPONSE) in registry


def test_default_registry_is_built_once():
    assert default_registry() is default_registry()


def test_lookup_accepts_enum_or_string_direction():
    registry = default_registry()
    assert registry.lookup("T109", "request") is registry.lookup("T109", Direction.REQUEST)
    assert registry.lookup("T109", "request").body.name == "invoice"


def test_request_and_response_tables_differ():
    registry = default_registry()
    request = registry.lookup("T109", Direction.REQUEST).body
    response = registry.lookup("T109", Direction.RESPONSE).body
    assert request is not response
    assert request.get("basicInformation").schema.get("invoiceNo").forbidden.describe() == "always"
    assert response.get("basicInformation").schema.get("invoiceNo").required is True


def test_empty_messages_and_array_roots():
    registry = default_registry()
    assert registry.lookup("T101", Direction.REQUEST).body is None
    assert registry.lookup("T129", Direction.REQUEST).many
    assert registry.lookup("T130", Direction.RESPONSE).many
    assert not registry.lookup("T109", Direction.REQUEST).many


def test_per_item_messages_leave_their_items_to_the_handler():
    descriptor = default_registry().lookup("T131", Direction.REQUEST)
    assert not descriptor.many
    assert descriptor.item_array == "goodsStockInItem"
    assert descriptor.item_schema().name == "goodsStockInItem"
    assert descriptor.header().get("goodsStockInItem").schema is None
    assert descriptor.header().get("goodsStockInItem").min_items == 1
    assert descriptor.body.get("goodsStockInItem").schema is descriptor.item_schema()

    invoice = default_registry().lookup("T109", Direction.REQUEST)
    assert invoice.header() is invoice.body
    assert invoice.item_schema() is None


@pytest.mark.parametrize("code, direction", [("T999", "request"), ("T109", "sideways"), ("", "response")])
def test_unknown_pairs_raise(code, direction):
    with pytest.raises(UnknownInterfaceError) as excinfo:
        default_registry().lookup(code, direction)
    assert excinfo.value.return_code == "99"
    assert isinstance(excinfo.value, LookupError)


def test_duplicate_registration_is_rejected():
    registry = SchemaRegistry(DESCRIPTORS[:2])
    with pytest.raises(ValueError):
        registry.register(DESCRIPTORS[0])


def test_frozen_registry_is_read_only():
    registry = SchemaRegistry().freeze()
    descriptor = SchemaDescriptor("X001", Direction.REQUEST, "Test", ObjectSchema("x", (text("a"),)))
    with pytest.raises(RuntimeError):
        registry.register(descriptor)


def test_iteration_is_sorted_by_code_then_direction():
    keys = [(d.interface_code, d.direction.value) for d in default_registry()]
    assert keys == sorted(keys)
    assert keys[0] == ("T101", "request")


def test_derive_keeps_order_and_rejects_unknown_fields():
    schema = ObjectSchema("x", (text("a"), text("b"), text("c")))
    derived = schema.derive(drop=("b",), update={"c": {"max_length": 3}}, add=(text("d"),))
    assert derived.field_names() == ["a", "c", "d"]
    assert derived.get("c").max_length == 3
    with pytest.raises(KeyError):
        schema.derive(drop=("z",))


def test_duplicate_field_names_are_rejected():
    with pytest.raises(ValueError):
        ObjectSchema("x", (text("a"), text("a")))
