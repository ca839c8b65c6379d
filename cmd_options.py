"""
Options for a proto-dts run, filled from the command line and environment.
"""
import os
from typing import Mapping, Optional

ENV_PREFIX = "PROTO_DTS_"
_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def env_flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


class CmdOptions:
    def __init__(self, root: Optional[str] = None, ts_root: Optional[str] = None, lint: bool = False,
                 verbose: bool = False, combine: bool = False, combine_name: str = "index.d.ts",
                 strict_match: bool = False):
        """
        Args:
            root: directory scanned recursively for .proto files (default: cwd)
            ts_root: directory receiving the .d.ts files (default: <cwd>/typings)
            lint: only parse and report errors, write nothing
            verbose: print debug information
            combine: merge all generated files into ts_root/combine_name afterwards
            combine_name: file name of the combined declaration
            strict_match: resolve type names on whole dotted segments only
        """
        self.root = os.path.abspath(root or os.getcwd())
        self.ts_root = os.path.abspath(ts_root or os.path.join(os.getcwd(), "typings"))
        self.lint = lint
        self.verbose = verbose
        self.combine = combine
        self.combine_name = combine_name
        self.strict_match = strict_match

    def apply_environment(self, environ: Optional[Mapping[str, str]] = None) -> 'CmdOptions':
        """Environment variables win over command line values."""
        environ = os.environ if environ is None else environ
        if environ.get(ENV_PREFIX + "ROOT"):
            self.root = os.path.abspath(environ[ENV_PREFIX + "ROOT"])
        if environ.get(ENV_PREFIX + "OUTPUT"):
            self.ts_root = os.path.abspath(environ[ENV_PREFIX + "OUTPUT"])
        if ENV_PREFIX + "LINT" in environ:
            self.lint = env_flag(environ[ENV_PREFIX + "LINT"])
        if ENV_PREFIX + "VERBOSE" in environ:
            self.verbose = env_flag(environ[ENV_PREFIX + "VERBOSE"])
        if ENV_PREFIX + "COMBINE" in environ:
            self.combine = env_flag(environ[ENV_PREFIX + "COMBINE"])
        return self

    def __repr__(self):
        return (f"CmdOptions(root={self.root!r}, ts_root={self.ts_root!r}, lint={self.lint}, "
                f"verbose={self.verbose}, combine={self.combine}, strict_match={self.strict_match})")
