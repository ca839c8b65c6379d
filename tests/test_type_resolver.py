import os
import pytest

from node_registry import NodeRegistry, crawl_ast
from proto_file_loader import load_proto_file, parse_proto
from type_resolver import PRIMITIVE_TYPES, TypeResolver, is_primitive_type, resolve_parse_results
from conftest import PROTO_DIR


def build(*sources):
    """Parse (filename, text) pairs and register them, returning (asts, registry)."""
    registry = NodeRegistry()
    asts = []
    for filename, text in sources:
        ast = parse_proto(text, filename)
        crawl_ast(ast.lookup_package(), registry, filename)
        asts.append(ast)
    return asts, registry


def message(ast, name):
    return ast.lookup_package().nested[name]


@pytest.mark.parametrize("primitive", sorted(PRIMITIVE_TYPES))
def test_primitive_types_are_left_alone(primitive):
    _, registry = build(("a.proto", f'package p; message {primitive.capitalize()}X {{ int32 v = 1; }}'))
    resolver = TypeResolver(registry)
    assert is_primitive_type(primitive)
    assert resolver.resolve_type_name(primitive, "p") is None


def test_same_package_cross_file():
    asts, registry = build(
        ("a.proto", 'package p; message A { B b = 1; }'),
        ("b.proto", 'package p; message B { int32 v = 1; }'),
    )
    resolutions = resolve_parse_results(asts, registry)
    assert message(asts[0], "A").fields["b"].type == "p.B"
    assert len(resolutions) == 1
    assert resolutions[0].old_type == "B"
    assert resolutions[0].new_type == "p.B"
    assert resolutions[0].declaring_file == "a.proto"


def test_other_package_by_bare_name():
    asts, registry = build(
        ("a.proto", 'package x; message A { Shared s = 1; }'),
        ("b.proto", 'package lib.common; enum Shared { S = 0; }'),
    )
    resolve_parse_results(asts, registry)
    assert message(asts[0], "A").fields["s"].type == "lib.common.Shared"


def test_unknown_type_is_unchanged():
    asts, registry = build(("a.proto", 'package p; message A { Missing m = 1; }'))
    assert resolve_parse_results(asts, registry) == []
    assert message(asts[0], "A").fields["m"].type == "Missing"


def test_resolution_is_idempotent():
    asts, registry = build(
        ("a.proto", 'package p; message A { B b = 1; repeated B bs = 2; }'),
        ("b.proto", 'package p; message B {}'),
    )
    resolver = TypeResolver(registry)
    resolver.resolve_ast(asts[0])
    first = [f.type for f in message(asts[0], "A").fields_array]
    resolver.resolve_ast(asts[0])
    second = [f.type for f in message(asts[0], "A").fields_array]
    assert first == second == ["p.B", "p.B"]
    assert len(resolver.resolutions) == 2


def test_package_qualified_candidate_wins():
    asts, registry = build(
        ("a.proto", 'package other; message Thing {}'),
        ("b.proto", 'package mine; message Thing {} message User { Thing t = 1; }'),
    )
    resolve_parse_results(asts, registry)
    assert message(asts[1], "User").fields["t"].type == "mine.Thing"


def test_first_registered_wins_for_bare_names():
    asts, registry = build(
        ("a.proto", 'package first; message Thing {}'),
        ("b.proto", 'package second; message Thing {}'),
        ("c.proto", 'package third; message User { Thing t = 1; }'),
    )
    resolve_parse_results(asts, registry)
    assert message(asts[2], "User").fields["t"].type == "first.Thing"


def test_substring_match_requires_simple_name():
    # '.Item' is a substring of 'shop.ItemList' but the simple name must match
    asts, registry = build(
        ("a.proto", 'package shop; message ItemList {}'),
        ("b.proto", 'package shop.v2; message Item {}'),
        ("c.proto", 'package app; message Cart { Item item = 1; }'),
    )
    resolve_parse_results(asts, registry)
    assert message(asts[2], "Cart").fields["item"].type == "shop.v2.Item"


def test_substring_and_strict_match():
    resolver = TypeResolver(NodeRegistry())
    assert resolver.key_matches("pkg.FooBar", ".Foo")
    assert resolver.key_matches("pkg.Foo", ".Foo")
    strict = TypeResolver(NodeRegistry(), strict_match=True)
    assert not strict.key_matches("pkg.FooBar", ".Foo")
    assert strict.key_matches("pkg.Foo", ".Foo")
    assert strict.key_matches("Foo", ".Foo")


def test_candidates_and_search_keys():
    assert TypeResolver.candidate_names("p.q", "T") == ["p.q.T", "T"]
    assert TypeResolver.candidate_names(None, "T") == ["T"]
    assert TypeResolver.search_key("T") == ".T"
    assert TypeResolver.search_key("p.T") == "p.T"


def test_qualified_references_are_kept():
    asts, registry = build(
        ("a.proto", 'package p; message A { q.B b = 1; .q.B c = 2; }'),
        ("b.proto", 'package q; message B {}'),
    )
    resolve_parse_results(asts, registry)
    fields = message(asts[0], "A").fields
    assert fields["b"].type == "q.B"
    assert fields["c"].type == ".q.B"


def test_resolved_fields_are_skipped():
    asts, registry = build(
        ("a.proto", 'package p; message A { B b = 1; B c = 2; }'),
        ("b.proto", 'package p; message B {}'),
    )
    fields = message(asts[0], "A").fields
    fields["b"].resolved = True
    resolve_parse_results(asts, registry)
    assert fields["b"].type == "B"
    assert fields["c"].type == "p.B"


def test_services_and_nested_messages():
    asts, registry = build(
        ("a.proto", '''
            package p;
            message Outer {
                message Inner { Req r = 1; }
            }
            service S { rpc Call (Req) returns (Resp); }
        '''),
        ("b.proto", 'package p; message Req {} message Resp {}'),
    )
    resolve_parse_results(asts, registry)
    inner = message(asts[0], "Outer").nested["Inner"]
    assert inner.fields["r"].type == "p.Req"
    call = message(asts[0], "S").methods["Call"]
    assert (call.request_type, call.response_type) == ("p.Req", "p.Resp")


def test_service_is_not_a_field_type_target():
    asts, registry = build(("a.proto", 'package p; service Svc {} message A { Svc s = 1; }'))
    resolve_parse_results(asts, registry)
    assert message(asts[0], "A").fields["s"].type == "Svc"


def test_fixture_tree():
    asts, registry = [], NodeRegistry()
    for rel in ("common/types.proto", "demo/shapes.proto"):
        path = os.path.join(PROTO_DIR, rel)
        ast = load_proto_file(path)
        crawl_ast(ast.lookup_package(), registry, path)
        asts.append(ast)
    resolve_parse_results(asts, registry)
    shape = message(asts[1], "Shape")
    assert shape.fields["points"].type == "demo.common.Point"
    assert shape.fields["status"].type == "demo.common.Status"
    # Nested types are not registered, so these stay as written
    assert shape.fields["style"].type == "Style"
    assert shape.fields["fill"].type == "Fill"
    assert shape.fields["tags"].type == "int32"
    method = message(asts[1], "ShapeService").methods["GetShape"]
    assert method.request_type == "demo.shapes.Shape"


def test_verbose_prints_resolutions(capsys):
    asts, registry = build(
        ("a.proto", 'package p; message A { B b = 1; }'),
        ("b.proto", 'package p; message B {}'),
    )
    resolve_parse_results(asts, registry, verbose=True)
    assert "[DEBUG] B => p.B" in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__])
