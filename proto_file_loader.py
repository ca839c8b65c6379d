# proto_file_loader.py
# Turns .proto text into a ProtoParseResult (reflection tree + package/import info).
import re
from typing import Any, Dict, List, Optional

from lark import Token, Tree
from lark.exceptions import LarkError, UnexpectedInput

from lark_parser import parse_proto_dsl
from proto_ast import (
    ProtoParseResult,
    SchemaEnum,
    SchemaField,
    SchemaMessage,
    SchemaMethod,
    SchemaNamespace,
    SchemaRoot,
    SchemaService,
)
from schema_errors import SchemaParseError

# Not part of the grammar; dropped before parsing.
_UNSUPPORTED_KEYWORDS = re.compile(r'\bsingular[ \t]+')

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '"': '"', "'": "'", '\\': '\\', '0': '\0'}


def load_proto_file(proto_file_path: str) -> ProtoParseResult:
    with open(proto_file_path, 'r', encoding='utf-8', errors='replace') as f:
        text = f.read()
    return parse_proto(text, proto_file_path)


def parse_proto(text: str, filename: str = "<input>") -> ProtoParseResult:
    """
    Parse proto source text.

    Raises:
        SchemaParseError: on syntax errors and on semantic errors such as duplicate names
    """
    text = _UNSUPPORTED_KEYWORDS.sub('', text)
    try:
        tree, comments = parse_proto_dsl(text)
    except UnexpectedInput as e:
        message = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
        raise SchemaParseError(message, filename, line=getattr(e, 'line', None),
                               column=getattr(e, 'column', None)) from e
    except LarkError as e:
        raise SchemaParseError(str(e), filename) from e

    try:
        return _build_parse_result_from_lark_tree(tree, DocCommentIndex(comments, text), filename)
    except SchemaParseError as e:
        if e.filename is None:
            e.filename = filename
        raise


class DocCommentIndex:
    """
    Doc comments ('///' runs and '/** */' blocks) by line. A comment on its own line
    documents the declaration below it; a comment after code documents that line.
    """

    def __init__(self, comment_tokens: List[Token], text: str):
        self.lines = text.splitlines()
        self.standalone_by_end_line: Dict[int, Token] = {}
        self.trailing_by_line: Dict[int, Token] = {}
        for tok in comment_tokens:
            if not is_doc_comment(str(tok)):
                continue
            if self._is_standalone(tok):
                self.standalone_by_end_line[tok.end_line] = tok
            else:
                self.trailing_by_line.setdefault(tok.line, tok)

    def _is_standalone(self, tok: Token) -> bool:
        if tok.line is None or tok.line > len(self.lines):
            return True
        return self.lines[tok.line - 1][:tok.column - 1].strip() == ''

    def comment_for(self, line: Optional[int]) -> str:
        if line is None or line < 0:
            return ""
        block = []
        ptr = line - 1
        while ptr in self.standalone_by_end_line:
            tok = self.standalone_by_end_line[ptr]
            block.insert(0, clean_doc_comment(str(tok)))
            # A block comment ends a run; only '///' lines chain upwards
            if str(tok).startswith('/**'):
                break
            ptr = tok.line - 1
        if block:
            return "\n".join(b for b in block if b)
        trailing = self.trailing_by_line.get(line)
        return clean_doc_comment(str(trailing)) if trailing is not None else ""


def is_doc_comment(text: str) -> bool:
    return text.startswith('///') or (text.startswith('/**') and text != '/**/')


def clean_doc_comment(text: str) -> str:
    if text.startswith('///'):
        return text[3:].strip()
    body = text[3:-2] if text.endswith('*/') else text[3:]
    lines = []
    for line in body.splitlines():
        line = line.strip()
        if line.startswith('*'):
            line = line[1:].strip()
        lines.append(line)
    return "\n".join(lines).strip()


def _unquote(token: str) -> str:
    body = token[1:-1]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == '\\' and i + 1 < len(body):
            out.append(_ESCAPES.get(body[i + 1], body[i + 1]))
            i += 2
            continue
        out.append(ch)
        i += 1
    return ''.join(out)


def parse_number(text: str, line: Optional[int] = None):
    sign = -1 if text.startswith('-') else 1
    digits = text.lstrip('+-')
    try:
        if digits[:2] in ('0x', '0X'):
            return sign * int(digits, 16)
        if any(c in digits for c in '.eE'):
            return sign * float(digits)
        if len(digits) > 1 and digits.startswith('0'):
            return sign * int(digits, 8)
        return sign * int(digits)
    except ValueError as e:
        raise SchemaParseError(f"invalid number '{text}'", line=line) from e


def _build_parse_result_from_lark_tree(tree: Tree, comments: DocCommentIndex, filename: str) -> ProtoParseResult:
    root = SchemaRoot()
    result = ProtoParseResult(filename, root)

    def get_line(node) -> int:
        if isinstance(node, Token):
            return node.line if node.line is not None else -1
        meta = getattr(node, 'meta', None)
        if meta is None or getattr(meta, 'empty', True):
            return -1
        return meta.line

    def tokens(node: Tree, token_type: str) -> List[Token]:
        return [c for c in node.children if isinstance(c, Token) and c.type == token_type]

    def subtrees(node: Tree, *names: str) -> List[Tree]:
        return [c for c in node.children if isinstance(c, Tree) and c.data in names]

    def parse_option_name(name_node: Tree) -> str:
        name = ''
        for part in name_node.children:
            ident = str(part.children[0])
            if part.data == 'ext_part':
                name += f"({ident.lstrip('.')})"
            else:
                name += ident
        return name

    def parse_constant(node) -> Any:
        if node.data == 'constant':
            return parse_constant(node.children[0])
        if node.data == 'ident_const':
            value = str(node.children[0])
            if value in ('true', 'false'):
                return value == 'true'
            return value
        if node.data == 'neg_ident_const':
            return '-' + str(node.children[0])
        if node.data == 'number_const':
            return parse_number(str(node.children[0]), node.children[0].line)
        if node.data == 'string_const':
            return ''.join(_unquote(str(t)) for t in node.children)
        if node.data == 'aggregate':
            value = {}
            for agg_field in node.children:
                key = str(agg_field.children[0])
                value[key] = parse_constant(agg_field.children[1])
            return value
        raise SchemaParseError(f"unexpected constant node '{node.data}'", line=get_line(node))

    def parse_options(nodes: List[Tree]) -> Dict[str, Any]:
        # 'option x = y;' statements
        options = {}
        for opt in nodes:
            options[parse_option_name(opt.children[0])] = parse_constant(opt.children[1])
        return options

    def parse_field_options(node: Tree) -> Dict[str, Any]:
        # '[x = y, ...]' suffix on fields and enum values
        options = {}
        for field_options in subtrees(node, 'field_options'):
            for opt in field_options.children:
                options[parse_option_name(opt.children[0])] = parse_constant(opt.children[1])
        return options

    def parse_field_id(token: Token) -> int:
        value = parse_number(str(token), token.line)
        if not isinstance(value, int) or value < 0:
            raise SchemaParseError(f"invalid field id '{token}'", line=token.line)
        return value

    def parse_field(field_node: Tree) -> SchemaField:
        # field: label? IDENT(type) IDENT(name) "=" NUMBER field_options? ";"
        labels = subtrees(field_node, 'label')
        rule = str(labels[0].children[0]) if labels else None
        type_tok, name_tok = tokens(field_node, 'IDENT')
        id_tok = tokens(field_node, 'NUMBER')[0]
        line = get_line(field_node)
        return SchemaField(str(name_tok), str(type_tok), parse_field_id(id_tok), rule=rule,
                           options=parse_field_options(field_node), comment=comments.comment_for(line), line=line)

    def parse_map_field(field_node: Tree) -> SchemaField:
        # map_field: "map" "<" IDENT(key) "," IDENT(value) ">" IDENT(name) "=" NUMBER ...
        key_tok, value_tok, name_tok = tokens(field_node, 'IDENT')
        id_tok = tokens(field_node, 'NUMBER')[0]
        line = get_line(field_node)
        return SchemaField(str(name_tok), str(value_tok), parse_field_id(id_tok), key_type=str(key_tok),
                           options=parse_field_options(field_node), comment=comments.comment_for(line), line=line)

    def parse_enum(enum_node: Tree) -> SchemaEnum:
        name = str(enum_node.children[0])
        line = get_line(enum_node)
        enum = SchemaEnum(name, comment=comments.comment_for(line),
                          options=parse_options(subtrees(enum_node, 'option')), line=line)
        for value_node in subtrees(enum_node, 'enum_value'):
            value = parse_number(str(value_node.children[1]), get_line(value_node))
            if not isinstance(value, int):
                raise SchemaParseError(f"invalid enum value '{value_node.children[1]}' in {name}",
                                       line=get_line(value_node))
            value_line = get_line(value_node)
            enum.add_value(str(value_node.children[0]), value, comment=comments.comment_for(value_line),
                           line=value_line)
        return enum

    def parse_message(msg_node: Tree) -> SchemaMessage:
        name = str(msg_node.children[0])
        line = get_line(msg_node)
        message = SchemaMessage(name, comment=comments.comment_for(line),
                                options=parse_options(subtrees(msg_node, 'option')), line=line)
        for child in msg_node.children[1:]:
            if not isinstance(child, Tree):
                continue
            if child.data == 'field':
                message.add_field(parse_field(child))
            elif child.data == 'map_field':
                message.add_field(parse_map_field(child))
            elif child.data == 'oneof':
                oneof_name = str(child.children[0])
                members = []
                for oneof_field in subtrees(child, 'field'):
                    field = message.add_field(parse_field(oneof_field))
                    field.partof = oneof_name
                    members.append(field.name)
                message.oneofs[oneof_name] = members
            elif child.data == 'message':
                message.add(parse_message(child))
            elif child.data == 'enum':
                message.add(parse_enum(child))
            # option/reserved/extensions/extend carry nothing the declarations need
        return message

    def parse_rpc_type(node: Tree):
        streaming = bool(subtrees(node, 'stream'))
        return str(tokens(node, 'IDENT')[0]), streaming

    def parse_service(svc_node: Tree) -> SchemaService:
        name = str(svc_node.children[0])
        line = get_line(svc_node)
        service = SchemaService(name, comment=comments.comment_for(line),
                                options=parse_options(subtrees(svc_node, 'option')), line=line)
        for rpc in subtrees(svc_node, 'rpc'):
            request, response = subtrees(rpc, 'rpc_type')
            request_type, request_stream = parse_rpc_type(request)
            response_type, response_stream = parse_rpc_type(response)
            rpc_line = get_line(rpc)
            body = subtrees(rpc, 'rpc_body')[0]
            service.add_method(SchemaMethod(
                str(rpc.children[0]),
                request_type,
                response_type,
                request_stream=request_stream,
                response_stream=response_stream,
                comment=comments.comment_for(rpc_line),
                options=parse_options(subtrees(body, 'option')),
                line=rpc_line,
            ))
        return service

    # Top-level declarations land in the root until a package statement is seen
    ptr: SchemaNamespace = root
    for stmt in tree.children:
        if not isinstance(stmt, Tree):
            continue
        if stmt.data == 'syntax':
            result.syntax = _unquote(str(stmt.children[0]))
        elif stmt.data == 'package':
            if result.package is not None:
                raise SchemaParseError("duplicate package statement", line=get_line(stmt))
            result.package = str(stmt.children[0]).lstrip('.')
            ptr = root.define(result.package)
        elif stmt.data == 'import_stmt':
            kinds = subtrees(stmt, 'import_kind')
            path = _unquote(str(tokens(stmt, 'STRING')[0]))
            if kinds and str(kinds[0].children[0]) == 'weak':
                result.weak_imports.append(path)
            else:
                result.imports.append(path)
        elif stmt.data == 'option':
            result.options.update(parse_options([stmt]))
        elif stmt.data == 'message':
            ptr.add(parse_message(stmt))
        elif stmt.data == 'enum':
            ptr.add(parse_enum(stmt))
        elif stmt.data == 'service':
            ptr.add(parse_service(stmt))
    return result
