"""
TypeScript declaration generator.
Renders declaration entities into one ambient `declare namespace` block per schema file.
"""
from typing import List

from entity_model import EnumEntity, InterfaceEntity, ServiceEntity
from generators.generator_utils import attach_comment

HEADER = "// generated by proto-dts"
INDENT = "  "


def print_enum(enum: EnumEntity, indent: str = INDENT) -> List[str]:
    lines = [f"{indent}export enum {enum.name} {{"]
    for name, member in enum.members.items():
        lines.extend(attach_comment(f"{name} = {member.value},", member.comment, indent=indent + INDENT))
    lines.append(f"{indent}}}")
    return lines


def print_enums(enums: List[EnumEntity], indent: str = INDENT) -> List[str]:
    lines = []
    for enum in enums:
        lines.extend(print_enum(enum, indent))
        lines.append("")
    return lines


def print_interface(entity: InterfaceEntity, indent: str = INDENT) -> List[str]:
    lines = attach_comment(f"export interface {entity.name} {{", entity.comment, indent=indent)
    for key, prop in entity.properties.items():
        marker = '' if prop.required else '?'
        lines.extend(attach_comment(f"{key}{marker}: {prop.type};", prop.comment, prop.default_value,
                                    indent=indent + INDENT))
    lines.append(f"{indent}}}")
    return lines


def print_internal_interfaces_and_enums(entity: InterfaceEntity, indent: str = INDENT) -> List[str]:
    """Nested types of a message live in a namespace named after the message."""
    lines = [f"{indent}export namespace {entity.name} {{"]
    inner = indent + INDENT
    lines.extend(print_enums(entity.nested_enums, inner))
    lines.extend(print_interfaces(entity.nested_interfaces, inner))
    while lines and lines[-1] == "":
        lines.pop()
    lines.append(f"{indent}}}")
    return lines


def print_interfaces(entities: List[InterfaceEntity], indent: str = INDENT) -> List[str]:
    lines = []
    for entity in entities:
        if entity.has_nested_types:
            lines.extend(print_internal_interfaces_and_enums(entity, indent))
            lines.append("")
        lines.extend(print_interface(entity, indent))
        lines.append("")
    return lines


def print_services(services: List[ServiceEntity], indent: str = INDENT) -> List[str]:
    lines = []
    for service in services:
        lines.extend(attach_comment(f"export interface {service.name} {{", service.comment, indent=indent))
        for method_name, function in service.methods.items():
            params = ", ".join(f"{p.name}: {p.type}" for p in function.ordered_params())
            signature = f"{method_name}({params}): Promise<{function.return_type}>;"
            lines.extend(attach_comment(signature, function.comment, indent=indent + INDENT))
        lines.append(f"{indent}}}")
        lines.append("")
    return lines


def generate_declaration_file(namespace: str, enums: List[EnumEntity], interfaces: List[InterfaceEntity],
                              services: List[ServiceEntity]) -> str:
    lines = [HEADER, f"declare namespace {namespace} {{"]
    lines.extend(print_enums(enums))
    lines.extend(print_interfaces(interfaces))
    lines.extend(print_services(services))
    while lines and lines[-1] == "":
        lines.pop()
    lines.append("}")
    return "\n".join(lines) + "\n"
