"""
Lightweight language-aware helpers for commitwise.

These utilities provide best-effort detection of module names, test files
and declared symbols from paths and raw diff text. They are plain
substring and regex heuristics; no source is ever parsed.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import List

_SCRIPT_EXTENSION_RE = re.compile(r"\.(ts|js|tsx|jsx|py)$")

# Either `function name`, `def name`, or `name = (`/`name: async ...`.
_FUNCTION_NAME_RE = re.compile(
    r"(?:function\s+(\w+)|def\s+(\w+)|(\w+)\s*[:=]\s*(?:function|\(|async))"
)


def file_name(path: str) -> str:
    return PurePosixPath(path).name


def module_name(path: str) -> str:
    """
    Base file name with a trailing script extension removed.

    ``src/auth.test.ts`` becomes ``auth.test``; only one extension is
    stripped, matching how relative imports name sibling modules.
    """

    return _SCRIPT_EXTENSION_RE.sub("", file_name(path))


def is_test_file_name(path: str) -> bool:
    """
    Strict test detection used for pairing tests with their sources.
    """

    name = file_name(path).lower()
    if ".test." in path or ".spec." in path or "__tests__" in path:
        return True
    return name.startswith("test_") or name.endswith("_test.py")


def extract_function_names(content: str) -> List[str]:
    """
    Return declared function names in order of appearance.

    Duplicates are kept so callers can weigh repeated declarations.
    """

    names: List[str] = []
    for match in _FUNCTION_NAME_RE.finditer(content):
        name = match.group(1) or match.group(2) or match.group(3)
        if name:
            names.append(name)
    return names
