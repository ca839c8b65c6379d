"""
proto_ast.py
Reflection-style tree for a parsed .proto file: namespaces, messages, enums, services,
methods and fields. Every node knows its parent, so fully qualified names are computed
from the tree (with a leading '.' like protoc descriptors; the root has an empty name).
"""
from typing import List, Dict, Optional, Any

from schema_errors import SchemaParseError


class SchemaNode:
    def __init__(self, name: str, comment: str = "", options: Optional[Dict[str, Any]] = None, line: int = -1):
        self.name = name
        self.parent: Optional['SchemaNamespace'] = None
        self.comment = comment
        self.options = options or {}
        self.line = line

    @property
    def full_name(self) -> str:
        path = [self.name]
        ptr = self.parent
        while ptr is not None:
            path.insert(0, ptr.name)
            ptr = ptr.parent
        return '.'.join(path)

    def __repr__(self):
        return f"{type(self).__name__}({self.full_name!r})"


class SchemaNamespace(SchemaNode):
    def __init__(self, name: str, comment: str = "", options: Optional[Dict[str, Any]] = None, line: int = -1):
        super().__init__(name, comment, options, line)
        self.nested: Dict[str, SchemaNode] = {}

    @property
    def nested_array(self) -> List[SchemaNode]:
        return list(self.nested.values())

    def add(self, node: SchemaNode) -> SchemaNode:
        existing = self.nested.get(node.name)
        if existing is not None:
            # Plain namespaces merge, anything else is a redefinition
            if type(existing) is SchemaNamespace and type(node) is SchemaNamespace:
                return existing
            raise SchemaParseError(f"duplicate name '{node.name}' in {self.full_name or 'root'}", line=node.line)
        node.parent = self
        self.nested[node.name] = node
        return node

    def define(self, path: str) -> 'SchemaNamespace':
        """Get or create the chain of plain namespaces for a dotted path."""
        ptr = self
        for part in path.lstrip('.').split('.'):
            child = ptr.nested.get(part)
            if child is None:
                child = ptr.add(SchemaNamespace(part))
            elif type(child) is not SchemaNamespace:
                raise SchemaParseError(f"'{part}' in package '{path}' is not a namespace", line=child.line)
            ptr = child
        return ptr

    def lookup(self, path: str) -> Optional[SchemaNode]:
        ptr: Optional[SchemaNode] = self
        for part in path.lstrip('.').split('.'):
            if not isinstance(ptr, SchemaNamespace):
                return None
            ptr = ptr.nested.get(part)
            if ptr is None:
                return None
        return ptr


class SchemaRoot(SchemaNamespace):
    def __init__(self):
        super().__init__("")


class SchemaField:
    def __init__(self, name: str, type_name: str, field_id: int, rule: Optional[str] = None,
                 key_type: Optional[str] = None, options: Optional[Dict[str, Any]] = None,
                 comment: str = "", line: int = -1):
        self.name = name
        self.type = type_name       # value type for map fields
        self.id = field_id
        self.rule = rule            # 'optional' | 'required' | 'repeated' | None
        self.key_type = key_type    # only set for map fields
        self.options = options or {}
        self.comment = comment
        self.line = line
        self.parent: Optional['SchemaMessage'] = None
        self.partof: Optional[str] = None  # oneof name
        # Set when a later stage binds the type to a node; the parser never does
        self.resolved = False
        self.resolved_type: Optional[SchemaNode] = None

    @property
    def repeated(self) -> bool:
        return self.rule == 'repeated'

    @property
    def required(self) -> bool:
        return self.rule == 'required'

    @property
    def optional(self) -> bool:
        return not self.required

    @property
    def map(self) -> bool:
        return self.key_type is not None

    @property
    def default_value(self) -> Optional[Any]:
        return self.options.get('default')

    def __repr__(self):
        return f"SchemaField({self.name!r}, type={self.type!r}, id={self.id})"


class SchemaMessage(SchemaNamespace):
    def __init__(self, name: str, comment: str = "", options: Optional[Dict[str, Any]] = None, line: int = -1):
        super().__init__(name, comment, options, line)
        self.fields: Dict[str, SchemaField] = {}
        self.oneofs: Dict[str, List[str]] = {}

    @property
    def fields_array(self) -> List[SchemaField]:
        return list(self.fields.values())

    def add_field(self, field: SchemaField) -> SchemaField:
        if field.name in self.fields:
            raise SchemaParseError(f"duplicate field name '{field.name}' in {self.full_name}", line=field.line)
        for other in self.fields.values():
            if other.id == field.id:
                raise SchemaParseError(
                    f"duplicate field id {field.id} in {self.full_name} ('{other.name}' and '{field.name}')",
                    line=field.line)
        field.parent = self
        self.fields[field.name] = field
        return field


class SchemaEnum(SchemaNode):
    def __init__(self, name: str, comment: str = "", options: Optional[Dict[str, Any]] = None, line: int = -1):
        super().__init__(name, comment, options, line)
        self.values: Dict[str, int] = {}
        self.comments: Dict[str, str] = {}

    def add_value(self, name: str, value: int, comment: str = "", line: int = -1):
        if name in self.values:
            raise SchemaParseError(f"duplicate enum value '{name}' in {self.full_name}", line=line)
        if value in self.values.values() and self.options.get('allow_alias') is not True:
            raise SchemaParseError(f"duplicate enum number {value} in {self.full_name}", line=line)
        self.values[name] = value
        self.comments[name] = comment


class SchemaMethod:
    def __init__(self, name: str, request_type: Optional[str], response_type: str,
                 request_stream: bool = False, response_stream: bool = False,
                 comment: str = "", options: Optional[Dict[str, Any]] = None, line: int = -1):
        self.name = name
        self.type = 'rpc'
        self.request_type = request_type
        self.response_type = response_type
        self.request_stream = request_stream
        self.response_stream = response_stream
        self.comment = comment
        self.options = options or {}
        self.line = line
        self.parent: Optional['SchemaService'] = None


class SchemaService(SchemaNode):
    def __init__(self, name: str, comment: str = "", options: Optional[Dict[str, Any]] = None, line: int = -1):
        super().__init__(name, comment, options, line)
        self.methods: Dict[str, SchemaMethod] = {}

    @property
    def methods_array(self) -> List[SchemaMethod]:
        return list(self.methods.values())

    def add_method(self, method: SchemaMethod) -> SchemaMethod:
        if method.name in self.methods:
            raise SchemaParseError(f"duplicate rpc '{method.name}' in {self.full_name}", line=method.line)
        method.parent = self
        self.methods[method.name] = method
        return method


class ProtoParseResult:
    def __init__(self, filename: str, root: SchemaRoot):
        self.filename = filename
        self.root = root
        self.package: Optional[str] = None
        self.syntax: Optional[str] = None
        self.imports: List[str] = []
        self.weak_imports: List[str] = []
        self.options: Dict[str, Any] = {}

    def lookup_package(self) -> Optional[SchemaNamespace]:
        """The namespace node of the declared package, or None."""
        if not self.package:
            return None
        node = self.root.lookup(self.package)
        if not isinstance(node, SchemaNamespace) or isinstance(node, SchemaMessage):
            return None
        return node
