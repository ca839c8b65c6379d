"""
entity_model.py
Generator-ready declaration entities. Independent of the schema AST: every type is
already mapped to a TypeScript type string.
"""
from typing import Any, Dict, List, Optional


class EnumEntityMember:
    def __init__(self, value: int, comment: str = ""):
        self.value = value
        self.comment = comment

    def __repr__(self):
        return f"EnumEntityMember(value={self.value!r})"


class EnumEntity:
    def __init__(self, name: str, members: Optional[Dict[str, EnumEntityMember]] = None):
        self.name = name
        self.members = members if members is not None else {}


class InterfacePropertyEntity:
    def __init__(self, index: int, type: str, optional: bool, required: bool, comment: str = "",
                 default_value: Optional[Any] = None):
        self.index = index
        self.type = type
        self.optional = optional
        self.required = required
        self.comment = comment
        self.default_value = default_value

    def __repr__(self):
        return f"InterfacePropertyEntity(index={self.index}, type={self.type!r}, required={self.required})"


class InterfaceEntity:
    def __init__(self, name: str, properties: Optional[Dict[str, InterfacePropertyEntity]] = None,
                 nested_interfaces: Optional[List['InterfaceEntity']] = None,
                 nested_enums: Optional[List[EnumEntity]] = None, comment: str = ""):
        self.name = name
        self.properties = properties if properties is not None else {}
        self.nested_interfaces = nested_interfaces if nested_interfaces is not None else []
        self.nested_enums = nested_enums if nested_enums is not None else []
        self.comment = comment

    @property
    def has_nested_types(self) -> bool:
        return len(self.nested_interfaces) + len(self.nested_enums) > 0


class FunctionParam:
    def __init__(self, name: str, type: str, index: int):
        self.name = name
        self.type = type
        self.index = index

    def __repr__(self):
        return f"FunctionParam({self.name!r}, {self.type!r}, index={self.index})"


class FunctionEntity:
    def __init__(self, input_params: Optional[List[FunctionParam]] = None, return_type: str = "void",
                 comment: str = ""):
        self.input_params = input_params if input_params is not None else []
        self.return_type = return_type
        self.comment = comment

    def ordered_params(self) -> List[FunctionParam]:
        """Params by declared index; unset slots are dropped."""
        slots: List[Optional[FunctionParam]] = []
        for param in self.input_params:
            if param is None or param.index is None:
                continue
            while len(slots) <= param.index:
                slots.append(None)
            slots[param.index] = param
        return [p for p in slots if p is not None]


class ServiceEntity:
    def __init__(self, name: str, methods: Optional[Dict[str, FunctionEntity]] = None, comment: str = ""):
        self.name = name
        self.methods = methods if methods is not None else {}
        self.comment = comment
