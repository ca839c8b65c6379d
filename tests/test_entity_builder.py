import pytest

from entity_builder import (
    build_enum_entities,
    build_interface_entities,
    build_service_entities,
    convert_field_to_interface_property_entity,
    convert_message_to_interface_entity,
    convert_method_to_function_entity,
    convert_to_enum_entity,
)
from entity_model import FunctionEntity, FunctionParam
from node_registry import NodeRegistry, crawl_ast
from proto_ast import SchemaField, SchemaMethod
from proto_file_loader import parse_proto


def package_node(text, name):
    return parse_proto(text).lookup_package().nested[name]


def test_repeated_scalar_field():
    prop = convert_field_to_interface_property_entity(SchemaField("ids", "int32", 1, rule="repeated"))
    assert prop.type == "number[]"
    assert prop.required is False
    assert prop.optional is True
    assert prop.index == 1


def test_required_field_with_default():
    prop = convert_field_to_interface_property_entity(
        SchemaField("name", "string", 2, rule="required", options={"default": "x"}, comment="The name"))
    assert prop.type == "string"
    assert prop.required is True
    assert prop.optional is False
    assert prop.default_value == "x"
    assert prop.comment == "The name"


@pytest.mark.parametrize("field, expected", [
    (SchemaField("a", "bool", 1), "boolean"),
    (SchemaField("a", "bytes", 1), "string"),
    (SchemaField("a", "double", 1), "number"),
    (SchemaField("a", "sfixed64", 1), "number"),
    (SchemaField("a", "pkg.Thing", 1), "pkg.Thing"),
    (SchemaField("a", ".pkg.Thing", 1, rule="repeated"), "pkg.Thing[]"),
    (SchemaField("a", "pkg.Thing", 1, key_type="string"), "Record<string, pkg.Thing>"),
    (SchemaField("a", "int32", 1, key_type="uint64"), "Record<number, number>"),
    (SchemaField("a", "string", 1, key_type="bool"), "Record<string, string>"),
])
def test_field_types(field, expected):
    assert convert_field_to_interface_property_entity(field).type == expected


def test_message_properties_keep_declaration_order():
    node = package_node('''
        package p;
        /** A thing */
        message Thing {
            string z = 3;
            int32 a = 1;
            bool m = 2;
        }
    ''', "Thing")
    entity = convert_message_to_interface_entity(node)
    assert entity.name == "Thing"
    assert entity.comment == "A thing"
    assert list(entity.properties) == ["z", "a", "m"]
    assert not entity.has_nested_types


def test_message_nested_types():
    node = package_node('''
        package p;
        message Outer {
            enum Kind { A = 0; B = 1; }
            message Inner { int32 v = 1; }
            Inner inner = 1;
        }
    ''', "Outer")
    entity = convert_message_to_interface_entity(node)
    assert entity.has_nested_types
    assert [e.name for e in entity.nested_enums] == ["Kind"]
    assert [i.name for i in entity.nested_interfaces] == ["Inner"]
    assert entity.properties["inner"].type == "Inner"


def test_enum_entity_members():
    node = package_node('package p; enum Color { /// red\n RED = 0; GREEN = 5; }', "Color")
    entity = convert_to_enum_entity(node)
    assert entity.name == "Color"
    assert {k: m.value for k, m in entity.members.items()} == {"RED": 0, "GREEN": 5}
    assert all(m.comment == "" for m in entity.members.values())


def test_method_to_function():
    function = convert_method_to_function_entity(SchemaMethod("Get", ".p.Req", "p.Resp", comment="Get it"))
    params = function.ordered_params()
    assert [(p.name, p.type, p.index) for p in params] == [("req", "p.Req", 1)]
    assert function.return_type == "p.Resp"
    assert function.comment == "Get it"


def test_method_without_request():
    function = convert_method_to_function_entity(SchemaMethod("Ping", None, "Pong"))
    assert function.ordered_params() == []


def test_ordered_params_by_index():
    b = FunctionParam("b", "string", 2)
    a = FunctionParam("a", "number", 0)
    function = FunctionEntity(input_params=[b, None, a, FunctionParam("x", "string", None)])
    assert function.ordered_params() == [a, b]
    assert function.return_type == "void"


def test_build_entities_by_kind():
    registry = NodeRegistry()
    ast = parse_proto('''
        package p;
        enum E { A = 0; }
        message M {}
        service S { rpc Do (M) returns (M); }
    ''', "x.proto")
    crawl_ast(ast.lookup_package(), registry, "x.proto")
    entries = list(registry.entries())
    assert [e.name for e in build_enum_entities(entries)] == ["E"]
    assert [i.name for i in build_interface_entities(entries)] == ["M"]
    services = build_service_entities(entries)
    assert [s.name for s in services] == ["S"]
    assert list(services[0].methods) == ["Do"]


if __name__ == "__main__":
    pytest.main([__file__])
