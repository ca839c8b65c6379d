"""
proto_pipeline.py
End-to-end conversion of a directory of .proto files into .d.ts files.

File reads run concurrently and are joined before parsing. Parsing, registry building and
type resolution then run sequentially in sorted file order. Output files are written
concurrently once every reference has been resolved.
"""
import asyncio
import glob
import os
import sys
from typing import List, Optional, Tuple

from cmd_options import CmdOptions
from entity_builder import build_enum_entities, build_interface_entities, build_service_entities
from generators.combine import combine_declarations
from generators.typescript_generator import generate_declaration_file
from node_registry import FileIndex, NodeKind, NodeRegistry, build_file_index, crawl_ast
from proto_ast import ProtoParseResult
from proto_file_loader import parse_proto
from schema_errors import MissingNamespaceNodeError, MissingPackageError, SchemaParseError
from type_resolver import Resolution, resolve_parse_results

SCHEMA_EXTENSION = ".proto"
DECLARATION_EXTENSION = ".d.ts"

_DECLARATION_KINDS = (NodeKind.ENUM, NodeKind.MESSAGE, NodeKind.SERVICE)


def discover_schema_files(root: str) -> List[str]:
    pattern = os.path.join(root, "**", f"*{SCHEMA_EXTENSION}")
    return sorted(os.path.abspath(f) for f in glob.glob(pattern, recursive=True) if os.path.isfile(f))


def target_filename(filename: str, root: str, ts_root: str) -> str:
    relative_path = os.path.relpath(filename, root)
    if relative_path.endswith(SCHEMA_EXTENSION):
        relative_path = relative_path[:-len(SCHEMA_EXTENSION)]
    return os.path.join(ts_root, relative_path + DECLARATION_EXTENSION)


def _read_text(path: str) -> str:
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        return f.read()


def _write_text(path: str, content: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)


async def read_schema_files(files: List[str]) -> List[Tuple[str, str]]:
    """(filename, code) pairs, in the order of files."""
    codes = await asyncio.gather(*(asyncio.to_thread(_read_text, f) for f in files))
    return list(zip(files, codes))


class PipelineResult:
    def __init__(self, registry: NodeRegistry, file_index: FileIndex):
        self.registry = registry
        self.file_index = file_index
        self.asts: List[ProtoParseResult] = []
        self.written_files: List[str] = []
        self.failed_files: List[str] = []
        self.resolutions: List[Resolution] = []
        self.combined_file: Optional[str] = None


class ProtoDtsPipeline:
    """
    Owns the registry for one run. Only crawl_ast inserts registry entries and only the
    TypeResolver rewrites type names.
    """

    def __init__(self, options: CmdOptions):
        self.options = options
        self.verbose = options.verbose
        self.registry = NodeRegistry()
        self.file_index = FileIndex()
        self.asts: List[ProtoParseResult] = []
        self.failed_files: List[str] = []
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}")

    def log_error(self, error: str) -> None:
        self.errors.append(error)
        print(f"[ERROR] {error}", file=sys.stderr)

    def log_warning(self, warning: str) -> None:
        self.warnings.append(warning)
        if self.verbose:
            print(f"[WARNING] {warning}", file=sys.stderr)

    def parse_sources(self, sources: List[Tuple[str, str]]) -> List[ProtoParseResult]:
        """
        Parse every source and register its declarations.

        Raises:
            MissingPackageError: a file parsed but declares no package
            MissingNamespaceNodeError: the package namespace is missing from the file's tree
        """
        for filename, code in sources:
            try:
                ast = parse_proto(code, filename)
            except SchemaParseError as e:
                self.failed_files.append(filename)
                self.log_error(f"filename: {filename}")
                self.log_error(str(e))
                if self.options.lint:
                    sys.stderr.write(f"pb lint ERROR: {filename}{os.linesep}")
                continue

            if self.options.lint:
                self.debug_print(f"lint ok: {filename}")
                continue

            if not ast.package:
                raise MissingPackageError(filename)
            namespace_node = ast.lookup_package()
            if namespace_node is None:
                raise MissingNamespaceNodeError(filename, ast.package)

            self.asts.append(ast)
            crawl_ast(namespace_node, self.registry, filename)
            self.debug_print(f"registered {filename} (package {ast.package})")

        for name, files in self.registry.duplicates().items():
            self.log_warning(f"{name} is defined in multiple files: {', '.join(files)}")
        return self.asts

    def resolve_types(self) -> List[Resolution]:
        return resolve_parse_results(self.asts, self.registry, strict_match=self.options.strict_match,
                                     verbose=self.verbose)

    def render_file(self, filename: str) -> Optional[str]:
        """Declaration file text for one schema file, or None if it declares nothing."""
        namespace = self.file_index.namespace_for(filename)
        if namespace is None:
            return None
        entries = [e for e in self.file_index.entries_for(filename) if e.kind in _DECLARATION_KINDS]
        if not entries:
            return None
        return generate_declaration_file(
            namespace.full_name,
            build_enum_entities(entries),
            build_interface_entities(entries),
            build_service_entities(entries),
        )

    async def write_declarations(self, filenames: List[str]) -> List[str]:
        async def write_one(filename: str) -> Optional[str]:
            content = self.render_file(filename)
            if content is None:
                return None
            target = target_filename(filename, self.options.root, self.options.ts_root)
            await asyncio.to_thread(_write_text, target, content)
            self.debug_print(f"wrote {target}")
            return target

        written = await asyncio.gather(*(write_one(f) for f in filenames))
        return [w for w in written if w is not None]

    async def run(self) -> PipelineResult:
        files = discover_schema_files(self.options.root)
        self.debug_print(f"found {len(files)} schema files under {self.options.root}")
        sources = await read_schema_files(files)

        self.parse_sources(sources)
        self.file_index = build_file_index(self.registry)

        result = PipelineResult(self.registry, self.file_index)
        result.failed_files = list(self.failed_files)
        if self.options.lint:
            return result

        result.asts = list(self.asts)
        result.resolutions = self.resolve_types()
        result.written_files = await self.write_declarations([ast.filename for ast in self.asts])

        if self.options.combine:
            result.combined_file = await asyncio.to_thread(
                combine_declarations, self.options.ts_root, self.options.combine_name)
            self.debug_print(f"combined declarations into {result.combined_file}")
        return result


async def load_proto(options: CmdOptions) -> PipelineResult:
    return await ProtoDtsPipeline(options).run()
