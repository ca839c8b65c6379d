"""
Merges every generated declaration file under a directory into a single file.
TypeScript merges repeated `declare namespace` blocks, so plain concatenation stays valid.
"""
import glob
import os
from typing import List, Optional

from generators.typescript_generator import HEADER

DECLARATION_EXTENSION = ".d.ts"


def collect_declaration_files(ts_root: str, exclude: Optional[str] = None) -> List[str]:
    pattern = os.path.join(ts_root, "**", f"*{DECLARATION_EXTENSION}")
    files = sorted(os.path.abspath(f) for f in glob.glob(pattern, recursive=True))
    if exclude:
        files = [f for f in files if f != os.path.abspath(exclude)]
    return files


def combine_declarations(ts_root: str, output_name: str = "index.d.ts") -> str:
    """
    Concatenate all declaration files under ts_root into ts_root/output_name.

    Returns:
        str: path of the combined file
    """
    target = os.path.join(ts_root, output_name)
    parts = [HEADER]
    for path in collect_declaration_files(ts_root, exclude=target):
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
        body = [line for line in content.splitlines() if line != HEADER]
        rel = os.path.relpath(path, ts_root).replace(os.sep, '/')
        parts.append(f"// {rel}")
        parts.extend(body)
    os.makedirs(ts_root, exist_ok=True)
    with open(target, 'w', encoding='utf-8') as f:
        f.write("\n".join(parts) + "\n")
    return target
