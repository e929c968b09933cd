# patterns.py
# Glob matching for path groups.
#
# Supported syntax (minimatch-like, which is what the watch globs were
# written for):
#   **      any number of directories (including none)
#   *       anything except "/"
#   ?       one character except "/"
#   {a,b}   alternation, whitespace around alternatives ignored
#   !pat    exclusion, applied after the positive patterns
from __future__ import annotations

import re
from typing import Iterable, List, Pattern, Tuple

Compiled = Tuple[List[Pattern[str]], List[Pattern[str]]]


def expand_braces(pattern: str) -> List[str]:
    """Expand the first {a,b} group recursively: "x.{js, json}" -> ["x.js", "x.json"]."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for end in range(start, len(pattern)):
        ch = pattern[end]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]  # unbalanced, treat literally

    body = pattern[start + 1:end]
    parts: List[str] = []
    depth = 0
    current = ""
    for ch in body:
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current += ch
    parts.append(current)

    prefix, suffix = pattern[:start], pattern[end + 1:]
    out: List[str] = []
    for part in parts:
        out.extend(expand_braces(prefix + part.strip() + suffix))
    return out


def glob_to_regex(pattern: str) -> Pattern[str]:
    i, n = 0, len(pattern)
    out = ""
    while i < n:
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out += "(?:.*/)?"
            i += 3
            continue
        if pattern.startswith("**", i):
            out += ".*"
            i += 2
            continue
        if ch == "*":
            out += "[^/]*"
        elif ch == "?":
            out += "[^/]"
        else:
            out += re.escape(ch)
        i += 1
    return re.compile(out + r"\Z")


def _normalise(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def compile_patterns(patterns: Iterable[str]) -> Compiled:
    include: List[Pattern[str]] = []
    exclude: List[Pattern[str]] = []
    for raw in patterns:
        target = include
        if raw.startswith("!"):
            target = exclude
            raw = raw[1:]
        for expanded in expand_braces(_normalise(raw)):
            target.append(glob_to_regex(expanded))
    return include, exclude


def matches(compiled: Compiled, rel_path: str) -> bool:
    include, exclude = compiled
    path = _normalise(rel_path)
    if not any(p.match(path) for p in include):
        return False
    return not any(p.match(path) for p in exclude)


def static_base(pattern: str) -> str:
    """
    Directory part of `pattern` before the first wildcard segment.

    "app/**/*.js" -> "app", "test/index.html" -> "test", "*.css" -> "".
    """
    parts = _normalise(pattern.lstrip("!")).split("/")
    base: List[str] = []
    for part in parts[:-1]:
        if any(ch in part for ch in "*?[{"):
            break
        base.append(part)
    return "/".join(base)
