"""
entity_builder.py
Converts resolved schema nodes into declaration entities.
"""
from typing import List

from entity_model import (
    EnumEntity,
    EnumEntityMember,
    FunctionEntity,
    FunctionParam,
    InterfaceEntity,
    InterfacePropertyEntity,
    ServiceEntity,
)
from generators.generator_utils import strip_leading_dot, type_mapping
from node_registry import NodeKind, RegistryEntry
from proto_ast import SchemaEnum, SchemaField, SchemaMessage, SchemaMethod, SchemaService


def convert_to_enum_entity(node: SchemaEnum) -> EnumEntity:
    # Member comments are not carried over; only the declared numbers matter downstream
    return EnumEntity(
        name=node.name,
        members={name: EnumEntityMember(value, comment="") for name, value in node.values.items()},
    )


def convert_field_to_interface_property_entity(field: SchemaField) -> InterfacePropertyEntity:
    return InterfacePropertyEntity(
        index=field.id,
        type=type_mapping(field.type, field.repeated, field.key_type),
        optional=field.optional,
        required=field.required,
        comment=field.comment or "",
        default_value=field.default_value,
    )


def convert_message_to_interface_entity(node: SchemaMessage) -> InterfaceEntity:
    entity = InterfaceEntity(name=node.name, comment=node.comment or "")
    for nested in node.nested_array:
        if isinstance(nested, SchemaEnum):
            entity.nested_enums.append(convert_to_enum_entity(nested))
        elif isinstance(nested, SchemaMessage):
            entity.nested_interfaces.append(convert_message_to_interface_entity(nested))
    # Declaration order, not field number order
    for field in node.fields_array:
        entity.properties[field.name] = convert_field_to_interface_property_entity(field)
    return entity


def convert_method_to_function_entity(node: SchemaMethod) -> FunctionEntity:
    input_params = []
    if node.request_type:
        input_params.append(FunctionParam(name="req", type=strip_leading_dot(node.request_type), index=1))
    return FunctionEntity(
        input_params=input_params,
        return_type=strip_leading_dot(node.response_type),
        comment=node.comment or "",
    )


def convert_service_to_service_entity(node: SchemaService) -> ServiceEntity:
    return ServiceEntity(
        name=node.name,
        methods={method.name: convert_method_to_function_entity(method) for method in node.methods_array},
        comment=node.comment or "",
    )


def build_enum_entities(entries: List[RegistryEntry]) -> List[EnumEntity]:
    return [convert_to_enum_entity(e.node) for e in entries if e.kind == NodeKind.ENUM]


def build_interface_entities(entries: List[RegistryEntry]) -> List[InterfaceEntity]:
    return [convert_message_to_interface_entity(e.node) for e in entries if e.kind == NodeKind.MESSAGE]


def build_service_entities(entries: List[RegistryEntry]) -> List[ServiceEntity]:
    return [convert_service_to_service_entity(e.node) for e in entries if e.kind == NodeKind.SERVICE]
