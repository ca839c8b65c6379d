"""
type_resolver.py
Best-effort resolution of bare field type names to fully qualified registry keys.

Import statements are not followed (the real search path depends on how protoc was
invoked), so a reference is guessed from the registry: first as '<package>.<Type>',
then as the bare type name.
"""
import sys
from typing import List, Optional

from node_registry import NodeKind, NodeRegistry, RegistryEntry
from proto_ast import ProtoParseResult, SchemaMessage, SchemaService

PRIMITIVE_TYPES = frozenset([
    'double', 'float',
    'int32', 'int64', 'uint32', 'uint64', 'sint32', 'sint64',
    'fixed32', 'fixed64', 'sfixed32', 'sfixed64',
    'bool', 'bytes', 'string',
    'list', 'map',
])

_RESOLVABLE_KINDS = (NodeKind.ENUM, NodeKind.MESSAGE)


def is_primitive_type(type_name: str) -> bool:
    return type_name in PRIMITIVE_TYPES


class Resolution:
    def __init__(self, owner: str, old_type: str, new_type: str, declaring_file: str):
        self.owner = owner
        self.old_type = old_type
        self.new_type = new_type
        self.declaring_file = declaring_file

    def __repr__(self):
        return f"Resolution({self.owner}: {self.old_type} => {self.new_type})"


class TypeResolver:
    def __init__(self, registry: NodeRegistry, strict_match: bool = False, verbose: bool = False):
        """
        Args:
            registry: the populated cross-file registry
            strict_match: match registry keys on whole dotted segments instead of substrings
            verbose: print every applied resolution
        """
        self.registry = registry
        self.strict_match = strict_match
        self.verbose = verbose
        self.resolutions: List[Resolution] = []

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}")

    @staticmethod
    def candidate_names(package: Optional[str], type_name: str) -> List[str]:
        if package:
            return [f"{package}.{type_name}", type_name]
        return [type_name]

    @staticmethod
    def search_key(candidate: str) -> str:
        return candidate if '.' in candidate else f".{candidate}"

    def key_matches(self, key: str, search_key: str) -> bool:
        if not self.strict_match:
            # Loose on purpose: '.Foo' also hits 'pkg.Foo.Bar' and 'pkg.FooBar'
            return search_key in key
        bare = search_key.lstrip('.')
        return key == bare or key.endswith('.' + bare)

    def find_entry(self, package: Optional[str], type_name: str) -> Optional[RegistryEntry]:
        """First enum/message entry matching type_name, trying the package-qualified name first."""
        for candidate in self.candidate_names(package, type_name):
            search_key = self.search_key(candidate)
            for key, entries in self.registry.items():
                if not self.key_matches(key, search_key):
                    continue
                matched = [e for e in entries if e.kind in _RESOLVABLE_KINDS and e.name == type_name]
                if matched:
                    return matched[0]
        return None

    def resolve_type_name(self, type_name: Optional[str], package: Optional[str]) -> Optional[str]:
        """Fully qualified name for type_name, or None when it is primitive or unknown."""
        if not type_name or is_primitive_type(type_name):
            return None
        entry = self.find_entry(package, type_name)
        if entry is None:
            return None
        return entry.full_name

    def _apply(self, owner: str, old_type: str, new_type: str, declaring_file: str) -> None:
        self.resolutions.append(Resolution(owner, old_type, new_type, declaring_file))
        self.debug_print(f"{old_type} => {new_type}")

    def resolve_message(self, message: SchemaMessage, package: Optional[str], declaring_file: str) -> None:
        for field in message.fields_array:
            if field.resolved or field.resolved_type is not None:
                continue
            new_type = self.resolve_type_name(field.type, package)
            if new_type is not None and new_type != field.type:
                self._apply(f"{message.full_name.lstrip('.')}.{field.name}", field.type, new_type, declaring_file)
                field.type = new_type
        for nested in message.nested_array:
            if isinstance(nested, SchemaMessage):
                self.resolve_message(nested, package, declaring_file)

    def resolve_service(self, service: SchemaService, package: Optional[str], declaring_file: str) -> None:
        for method in service.methods_array:
            owner = f"{service.full_name.lstrip('.')}.{method.name}"
            new_request = self.resolve_type_name(method.request_type, package)
            if new_request is not None and new_request != method.request_type:
                self._apply(owner, method.request_type, new_request, declaring_file)
                method.request_type = new_request
            new_response = self.resolve_type_name(method.response_type, package)
            if new_response is not None and new_response != method.response_type:
                self._apply(owner, method.response_type, new_response, declaring_file)
                method.response_type = new_response

    def resolve_ast(self, ast: ProtoParseResult) -> None:
        """Rewrite unresolved type references declared in the package namespace of one file."""
        namespace = ast.lookup_package()
        if namespace is None:
            print(f"[WARNING] {ast.filename}: no package namespace, skipping type resolution", file=sys.stderr)
            return
        for node in namespace.nested_array:
            if isinstance(node, SchemaMessage):
                self.resolve_message(node, ast.package, ast.filename)
            elif isinstance(node, SchemaService):
                self.resolve_service(node, ast.package, ast.filename)


def resolve_parse_results(asts: List[ProtoParseResult], registry: NodeRegistry, strict_match: bool = False,
                          verbose: bool = False) -> List[Resolution]:
    resolver = TypeResolver(registry, strict_match=strict_match, verbose=verbose)
    for ast in asts:
        resolver.resolve_ast(ast)
    return resolver.resolutions
