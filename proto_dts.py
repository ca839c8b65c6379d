#!/usr/bin/env python3
"""
proto-dts

Scans a directory tree for protocol buffer schema files (.proto) and generates one
TypeScript declaration file (.d.ts) per schema file. Types referenced across files are
resolved to their fully qualified names, and the output mirrors the input layout.

Usage:
    python proto_dts.py [--root <dir>] [--output <dir>] [--lint] [--combine] [--combine-name <name>] [--strict-match] [--verbose]

Arguments:
    --root, -r        : Directory scanned recursively for .proto files (default: current directory)
    --output, -o      : Directory where .d.ts files are written (default: ./typings)
    --lint            : Only parse the schema files and report errors, write nothing
    --combine         : Also merge all generated declarations into a single file
    --combine-name    : File name of the merged declaration (default: index.d.ts)
    --strict-match    : Resolve type names on whole dotted segments instead of substrings
    --verbose, -v     : Print debug information
    --help, -h        : Show this help message

Environment variables PROTO_DTS_ROOT, PROTO_DTS_OUTPUT, PROTO_DTS_LINT, PROTO_DTS_VERBOSE
and PROTO_DTS_COMBINE override the matching arguments.

Example:
    python proto_dts.py --root ./protos --output ./typings
    python proto_dts.py --root ./protos --lint
    python proto_dts.py --root ./protos --output ./typings --combine
"""

import argparse
import asyncio
import sys

from cmd_options import CmdOptions
from proto_pipeline import load_proto
from schema_errors import MissingNamespaceNodeError, MissingPackageError


def parse_arguments(argv=None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        description="Generate TypeScript declaration files from protocol buffer schemas",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument('--root', '-r', help='Directory scanned recursively for .proto files')
    parser.add_argument('--output', '-o', help='Directory where .d.ts files are written')
    parser.add_argument('--lint', action='store_true', help='Only parse and report errors')
    parser.add_argument('--combine', action='store_true', help='Merge all generated declarations into one file')
    parser.add_argument('--combine-name', default='index.d.ts', help='File name of the merged declaration')
    parser.add_argument('--strict-match', action='store_true',
                        help='Resolve type names on whole dotted segments instead of substrings')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output for debugging')

    return parser.parse_args(argv)


def build_options(args) -> CmdOptions:
    options = CmdOptions(
        root=args.root,
        ts_root=args.output,
        lint=args.lint,
        verbose=args.verbose,
        combine=args.combine,
        combine_name=args.combine_name,
        strict_match=args.strict_match,
    )
    return options.apply_environment()


def main(argv=None) -> int:
    """
    Main entry point of the script.
    """
    options = build_options(parse_arguments(argv))

    try:
        result = asyncio.run(load_proto(options))
    except (MissingPackageError, MissingNamespaceNodeError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    if options.lint:
        print(f"Checked schema files, {len(result.failed_files)} failed to parse.")
        return 0

    print(f"Generated {len(result.written_files)} declaration files in {options.ts_root}.")
    if result.failed_files:
        print(f"Skipped {len(result.failed_files)} files that failed to parse.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
