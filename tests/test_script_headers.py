# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0"]
# ///
"""Checks that every module can run as a single-file UV script.

Validates:
  1. Each .py file begins with a PEP 723 inline metadata block
  2. The block declares requires-python
  3. Third-party packages a file imports are declared in its block
"""

import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent

PEP723_OPEN = "# /// script"

# import name -> distribution name
THIRD_PARTY = {
    "flask": "flask",
    "pydantic": "pydantic",
    "pytest": "pytest",
}


def _all_py_files():
    files = []
    for f in sorted(PROJECT_ROOT.rglob("*.py")):
        rel = f.relative_to(PROJECT_ROOT)
        if any(part.startswith(".") or part == "__pycache__" for part in rel.parts):
            continue
        files.append(f)
    return files


def _parse_pep723_block(text: str) -> str | None:
    m = re.search(r"^# /// script\s*\n((?:#[^\n]*\n)*?)# ///", text, re.MULTILINE)
    return m.group(1) if m else None


def _declared(block: str) -> set[str]:
    m = re.search(r"dependencies\s*=\s*\[([^\]]*)\]", block)
    if not m:
        return set()
    names = set()
    for dep in m.group(1).split(","):
        dep = dep.strip().strip('"').strip("'")
        if dep:
            names.add(re.split(r"[<>=!~\[ ]", dep, maxsplit=1)[0].lower())
    return names


def _imported(text: str) -> set[str]:
    modules = re.findall(r"^(?:from|import)\s+([A-Za-z_][A-Za-z0-9_]*)", text, re.MULTILINE)
    return {m for m in modules if m in THIRD_PARTY}


ALL_PY_FILES = _all_py_files()
ALL_PY_FILE_IDS = [str(f.relative_to(PROJECT_ROOT)) for f in ALL_PY_FILES]


@pytest.mark.parametrize("py_file", ALL_PY_FILES, ids=ALL_PY_FILE_IDS)
def test_block_is_first_line(py_file):
    first_line = py_file.read_text().split("\n")[0]
    assert first_line.strip() == PEP723_OPEN


@pytest.mark.parametrize("py_file", ALL_PY_FILES, ids=ALL_PY_FILE_IDS)
def test_declares_requires_python(py_file):
    block = _parse_pep723_block(py_file.read_text())
    assert block is not None
    assert "requires-python" in block


@pytest.mark.parametrize("py_file", ALL_PY_FILES, ids=ALL_PY_FILE_IDS)
def test_imports_are_declared(py_file):
    text = py_file.read_text()
    declared = _declared(_parse_pep723_block(text) or "")
    missing = {THIRD_PARTY[m] for m in _imported(text)} - declared
    assert not missing, f"{py_file.relative_to(PROJECT_ROOT)} imports undeclared {sorted(missing)}"
