"""
typedef_parser.py
Parses single thrift-style alias statements (`typedef <type> <alias>`) into an alias and
its TypeScript type.
"""
from typing import Dict

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from generators.generator_utils import array_of, record_of, thrift_type_mapping
from schema_errors import TypedefParseError

grammar = r"""
    start: "typedef" type_expr NAME ";"?

    ?type_expr: list_type
        | set_type
        | map_type
        | NAME -> named_type

    list_type: "list" "<" type_expr ">"
    set_type: "set" "<" type_expr ">"
    map_type: "map" "<" type_expr "," type_expr ">"

    NAME: /[A-Za-z_][A-Za-z0-9_.]*/

    %import common.WS
    %ignore WS
"""

parser = Lark(grammar, start='start', parser='lalr')


@v_args(inline=True)
class TypedefToDeclaration(Transformer):
    def named_type(self, name):
        return thrift_type_mapping(str(name))

    def list_type(self, element):
        return array_of(element)

    def set_type(self, element):
        return array_of(element)

    def map_type(self, key, value):
        return record_of(key, value)

    def start(self, type_expr, alias):
        return {'alias': str(alias), 'type': type_expr}


def parse_typedef(statement: str) -> Dict[str, str]:
    """
    Parse `typedef <type> <alias>`.

    Returns:
        dict with 'alias' and 'type' (the TypeScript type)

    Raises:
        TypedefParseError: if the statement is not a typedef
    """
    try:
        tree = parser.parse(statement.strip())
    except LarkError as e:
        raise TypedefParseError(f"invalid typedef statement {statement!r}: {e}") from e
    return TypedefToDeclaration().transform(tree)
