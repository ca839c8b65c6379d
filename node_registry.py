"""
node_registry.py
Cross-file registry of every declared namespace, message, enum and service, keyed by
fully qualified name (no leading '.'), plus the per-file re-projection used for emission.
"""
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from proto_ast import SchemaEnum, SchemaMessage, SchemaNamespace, SchemaNode, SchemaService


class NodeKind(Enum):
    ENUM = "enum"
    MESSAGE = "message"
    SERVICE = "service"
    NAMESPACE = "namespace"


def classify_node(node: SchemaNode) -> Optional[NodeKind]:
    # Messages are namespaces too, so they must be tested first
    if isinstance(node, SchemaEnum):
        return NodeKind.ENUM
    if isinstance(node, SchemaMessage):
        return NodeKind.MESSAGE
    if isinstance(node, SchemaService):
        return NodeKind.SERVICE
    if isinstance(node, SchemaNamespace):
        return NodeKind.NAMESPACE
    return None


def strip_leading_separator(full_name: str) -> str:
    return full_name[1:] if full_name.startswith('.') else full_name


class RegistryEntry:
    def __init__(self, node: SchemaNode, kind: NodeKind, declaring_file: str):
        self.node = node
        self.kind = kind
        self.declaring_file = declaring_file

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def full_name(self) -> str:
        return strip_leading_separator(self.node.full_name)

    def __repr__(self):
        return f"RegistryEntry({self.full_name!r}, kind={self.kind.value!r}, file={self.declaring_file!r})"


class NodeRegistry:
    """
    Fully qualified name -> every entry declared under that name, in insertion order.
    Duplicate declarations from different files are all kept.
    """

    def __init__(self):
        self._entries: Dict[str, List[RegistryEntry]] = {}

    def add(self, full_name: str, entry: RegistryEntry) -> None:
        self._entries.setdefault(full_name, []).append(entry)

    def get(self, full_name: str) -> List[RegistryEntry]:
        return self._entries.get(full_name, [])

    def first(self, full_name: str) -> Optional[RegistryEntry]:
        entries = self._entries.get(full_name)
        return entries[0] if entries else None

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def items(self) -> Iterator[Tuple[str, List[RegistryEntry]]]:
        return iter(self._entries.items())

    def entries(self) -> Iterator[RegistryEntry]:
        for entries in self._entries.values():
            yield from entries

    def duplicates(self) -> Dict[str, List[str]]:
        """Names of types declared by more than one file, with the declaring files."""
        result = {}
        for name, entries in self._entries.items():
            files = [e.declaring_file for e in entries if e.kind != NodeKind.NAMESPACE]
            if len(set(files)) > 1:
                result[name] = files
        return result

    def __contains__(self, full_name: str) -> bool:
        return full_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


def crawl_ast(node: SchemaNode, registry: NodeRegistry, filename: str) -> None:
    """
    Register node and everything reachable from it through plain namespaces.

    Uses an explicit stack: children are pushed in declaration order and popped last
    first, so siblings are registered in reverse declaration order, depth first.
    Messages are registered but not descended into.
    """
    node_list = [node]
    while node_list:
        current = node_list.pop()
        kind = classify_node(current)
        if kind is None:
            continue
        registry.add(strip_leading_separator(current.full_name), RegistryEntry(current, kind, filename))
        if kind == NodeKind.NAMESPACE:
            node_list.extend(current.nested_array)


class FileIndex:
    """Registry entries grouped by the file that declared them."""

    def __init__(self):
        self._by_file: Dict[str, List[RegistryEntry]] = {}

    def add(self, entry: RegistryEntry) -> None:
        self._by_file.setdefault(entry.declaring_file, []).append(entry)

    def files(self) -> List[str]:
        return list(self._by_file.keys())

    def entries_for(self, filename: str, kind: Optional[NodeKind] = None) -> List[RegistryEntry]:
        entries = self._by_file.get(filename, [])
        if kind is None:
            return list(entries)
        return [e for e in entries if e.kind == kind]

    def namespace_for(self, filename: str) -> Optional[RegistryEntry]:
        namespaces = self.entries_for(filename, NodeKind.NAMESPACE)
        return namespaces[0] if namespaces else None

    def __contains__(self, filename: str) -> bool:
        return filename in self._by_file

    def __len__(self) -> int:
        return len(self._by_file)


def build_file_index(registry: NodeRegistry) -> FileIndex:
    index = FileIndex()
    for _, entries in registry.items():
        for entry in entries:
            index.add(entry)
    return index
