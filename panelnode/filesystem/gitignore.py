"""Matching of paths against gitignore style pattern lines."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

_FOLDER_GLOB = re.compile(r"([^/+])/.*\*\.")
_MAGIC_STAR = "#$~"


@dataclass(frozen=True)
class _Pattern:
    regex: "re.Pattern[str]"
    negate: bool


def _compile_line(line: str) -> Optional[_Pattern]:
    line = line.rstrip("\r")
    if line.startswith("#"):
        return None
    line = line.strip(" ")
    if not line:
        return None

    negate = False
    if line[0] == "!":
        negate = True
        line = line[1:]
    if line[:1] in ("#", "!"):
        line = line[1:]

    if _FOLDER_GLOB.search(line) and not line.startswith("/"):
        line = "/" + line

    line = line.replace(".", r"\.")

    if line.startswith("/**/"):
        line = line[1:]
    line = line.replace("/**/", "(/|/.+/)")
    line = line.replace("**/", "(|." + _MAGIC_STAR + "/)")
    line = line.replace("/**", "(|/." + _MAGIC_STAR + ")")

    line = line.replace("\\*", "\\" + _MAGIC_STAR)
    line = line.replace("*", "([^/]*)")
    line = line.replace("?", "\\?")
    line = line.replace(_MAGIC_STAR, "*")

    expr = line + ("(|.*)" if line.endswith("/") else "(|/.*)")
    if expr.startswith("/"):
        expr = "^(|/)" + expr[1:]
    else:
        expr = "^(|.*/)" + expr
    expr += r"\Z"

    try:
        return _Pattern(re.compile(expr), negate)
    except re.error:
        return None


class GitIgnore:
    """A compiled set of gitignore pattern lines."""

    def __init__(self, lines: Iterable[str]) -> None:
        compiled = (_compile_line(line) for line in lines)
        self._patterns: Tuple[_Pattern, ...] = tuple(p for p in compiled if p is not None)

    def matches_path(self, path: str) -> bool:
        """Return True if the path is matched by the patterns, honouring negation."""
        path = path.replace(os.sep, "/")
        matched = False
        for pattern in self._patterns:
            if pattern.regex.search(path):
                matched = not pattern.negate
        return matched