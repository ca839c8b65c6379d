from lark import Lark


# Grammar for .proto schema files (proto2 / proto3 / editions subset)
grammar = r"""
    start: _statement*

    _statement: syntax
        | package
        | import_stmt
        | option
        | message
        | enum
        | service
        | extend
        | ";"

    syntax: ("syntax" | "edition") "=" STRING ";"
    package: "package" IDENT ";"
    import_stmt: "import" import_kind? STRING ";"
    !import_kind: "weak" | "public"

    option: "option" option_name "=" constant ";"
    option_name: option_part+
    option_part: IDENT -> plain_part
        | "(" IDENT ")" -> ext_part

    constant: IDENT -> ident_const
        | "-" IDENT -> neg_ident_const
        | NUMBER -> number_const
        | STRING+ -> string_const
        | aggregate
    aggregate: "{" (aggregate_field _aggregate_sep?)* "}"
    _aggregate_sep: "," | ";"
    aggregate_field: IDENT ":" constant
        | IDENT aggregate

    message: "message" IDENT "{" _message_item* "}"
    _message_item: field
        | map_field
        | oneof
        | message
        | enum
        | extend
        | option
        | reserved
        | extensions
        | ";"

    field: label? IDENT IDENT "=" NUMBER field_options? ";"
    !label: "optional" | "required" | "repeated"
    map_field: "map" "<" IDENT "," IDENT ">" IDENT "=" NUMBER field_options? ";"
    field_options: "[" field_option ("," field_option)* "]"
    field_option: option_name "=" constant

    oneof: "oneof" IDENT "{" _oneof_item* "}"
    _oneof_item: field | option | ";"

    reserved: "reserved" (_ranges | _reserved_names) ";"
    extensions: "extensions" _ranges field_options? ";"
    _ranges: range ("," range)*
    range: NUMBER ("to" range_end)?
    !range_end: NUMBER | "max"
    _reserved_names: reserved_name ("," reserved_name)*
    reserved_name: STRING | IDENT

    extend: "extend" IDENT "{" _extend_item* "}"
    _extend_item: field | ";"

    enum: "enum" IDENT "{" _enum_item* "}"
    _enum_item: enum_value | option | reserved | ";"
    enum_value: IDENT "=" NUMBER field_options? ";"

    service: "service" IDENT "{" _service_item* "}"
    _service_item: option | rpc | ";"
    rpc: "rpc" IDENT "(" rpc_type ")" "returns" "(" rpc_type ")" rpc_body
    rpc_type: stream? IDENT
    !stream: "stream"
    rpc_body: ";"
        | "{" _rpc_item* "}"
    _rpc_item: option | ";"

    IDENT: /\.?[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*/
    NUMBER: /[+-]?(0[xX][0-9a-fA-F]+|(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?)/
    STRING: /"(\\.|[^"\\\n])*"|'(\\.|[^'\\\n])*'/
    COMMENT: /\/\/[^\n]*|\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore COMMENT
"""


class ProtoLarkParser:
    """
    LALR parser for .proto text. Comments are ignored by the grammar but
    collected through a lexer callback so doc comments can be attached to
    declarations afterwards.
    """

    def __init__(self):
        self.comments = []
        self.parser = Lark(
            grammar,
            start='start',
            parser='lalr',
            propagate_positions=True,
            lexer_callbacks={'COMMENT': self.comments.append},
        )

    def parse(self, text):
        del self.comments[:]
        tree = self.parser.parse(text)
        return tree, list(self.comments)


parser = ProtoLarkParser()


def parse_proto_dsl(text):
    """Parse proto text, returning the lark tree and the comment tokens seen."""
    return parser.parse(text)
