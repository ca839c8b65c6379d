import os
import pytest

from generators.combine import collect_declaration_files, combine_declarations
from generators.typescript_generator import HEADER


def write(path, content):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)


def test_collect_declaration_files(temp_dir):
    write(os.path.join(temp_dir, "b", "two.d.ts"), "")
    write(os.path.join(temp_dir, "a.d.ts"), "")
    write(os.path.join(temp_dir, "notes.txt"), "")
    files = collect_declaration_files(temp_dir)
    assert files == [os.path.join(temp_dir, "a.d.ts"), os.path.join(temp_dir, "b", "two.d.ts")]
    assert collect_declaration_files(temp_dir, exclude=os.path.join(temp_dir, "a.d.ts")) == files[1:]


def test_combine_declarations(temp_dir):
    write(os.path.join(temp_dir, "x", "one.d.ts"), f"{HEADER}\ndeclare namespace a {{\n}}\n")
    write(os.path.join(temp_dir, "two.d.ts"), f"{HEADER}\ndeclare namespace b {{\n}}\n")
    target = combine_declarations(temp_dir)
    assert target == os.path.join(temp_dir, "index.d.ts")
    with open(target, encoding='utf-8') as f:
        content = f.read()
    assert content == "\n".join([
        HEADER,
        "// two.d.ts",
        "declare namespace b {",
        "}",
        "// x/one.d.ts",
        "declare namespace a {",
        "}",
    ]) + "\n"


def test_combine_skips_previous_output(temp_dir):
    write(os.path.join(temp_dir, "one.d.ts"), "declare namespace a {\n}\n")
    combine_declarations(temp_dir, "all.d.ts")
    target = combine_declarations(temp_dir, "all.d.ts")
    with open(target, encoding='utf-8') as f:
        content = f.read()
    assert content.count("declare namespace a") == 1
    assert "// all.d.ts" not in content


if __name__ == "__main__":
    pytest.main([__file__])
