"""Detector rules.

Each rule is a pure predicate over an `AnalyzedPath`. Rules are OR-combined, so
their order in `RULES` only changes which one is reported as the reason.

Rules:
- parent traversal: any `..`
- percent encoding: any `%` (encoded traversal is not decoded, only flagged)
- absolute path: leading `/` or `\\` followed by something
- tilde expansion: `~/`, `~\\` and unrecognised `~` forms
- colon patterns: drive letters, ADS-style and scheme-like colons
- reserved device names: `CON`, `NUL`, `COM1`... as the first component
"""

from __future__ import annotations

import enum
from collections.abc import Callable

from .base import AnalyzedPath

SEPARATORS = frozenset("/\\")
SUFFIX_DANGER = frozenset("/\\%\x00")
ASCII_DIGITS = frozenset("0123456789")
ASCII_LETTERS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")

# Win32 reserved device names, matched against the whole first component only
RESERVED_DEVICE_NAMES: frozenset[str] = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{i}" for i in range(1, 10)}
    | {f"LPT{i}" for i in range(1, 10)}
)


class Rule(str, enum.Enum):
    PARENT_TRAVERSAL = "parent-traversal"
    PERCENT_ENCODING = "percent-encoding"
    ABSOLUTE_PATH = "absolute-path"
    TILDE_EXPANSION = "tilde-expansion"
    COLON_PATTERN = "colon-pattern"
    RESERVED_DEVICE_NAME = "reserved-device-name"


def _has_parent_pair(cps: tuple[str, ...]) -> bool:
    return any(cps[i] == "." and cps[i + 1] == "." for i in range(len(cps) - 1))


def detect_parent_traversal(ctx: AnalyzedPath) -> bool:
    if ctx.length < 2:
        return False
    return _has_parent_pair(ctx.codepoints)


def detect_percent_encoding(ctx: AnalyzedPath) -> bool:
    return "%" in ctx.codepoints


def detect_absolute_path(ctx: AnalyzedPath) -> bool:
    # A lone separator has nothing to point at
    return ctx.length > 1 and ctx.codepoints[0] in SEPARATORS


def detect_tilde_expansion(ctx: AnalyzedPath) -> bool:
    cps = ctx.codepoints
    if ctx.length == 0 or cps[0] != "~":
        return False
    if ctx.length == 1:
        return False
    second = cps[1]
    if second in SEPARATORS:
        return True
    if ctx.length == 2 and second in ASCII_DIGITS:
        return False
    # ~user and ~user/... are username references. The rest of the path is not
    # re-scanned here; a `..` after the username is left to parent traversal.
    if second in ASCII_LETTERS:
        return False
    return True


def has_dangerous_suffix(ctx: AnalyzedPath, offset: int) -> bool:
    """True if a separator, `%`, NUL or `..` appears after *offset*."""
    cps = ctx.codepoints
    for i in range(offset + 1, ctx.length):
        if cps[i] in SUFFIX_DANGER:
            return True
        if cps[i] == "." and i < ctx.length - 1 and cps[i + 1] == ".":
            return True
    return False


def colon_positions(ctx: AnalyzedPath) -> list[int]:
    return [i for i, c in enumerate(ctx.codepoints) if c == ":"]


def _colon_at_start(ctx: AnalyzedPath) -> bool:
    if ctx.length <= 1:
        return False
    return has_dangerous_suffix(ctx, 0)


def _drive_letter_colon(ctx: AnalyzedPath) -> bool:
    # bare "X:" is a drive reference, not a path
    if ctx.length == 2:
        return False
    if ctx.codepoints[2] in SEPARATORS:
        return True
    return has_dangerous_suffix(ctx, 1)


def _inner_colon(ctx: AnalyzedPath, pos: int) -> bool:
    return has_dangerous_suffix(ctx, pos)


def analyze_colon_at(ctx: AnalyzedPath, pos: int) -> bool:
    if pos == 0:
        return _colon_at_start(ctx)
    if pos == 1:
        return _drive_letter_colon(ctx)
    return _inner_colon(ctx, pos)


def detect_colon_pattern(ctx: AnalyzedPath) -> bool:
    return any(analyze_colon_at(ctx, pos) for pos in colon_positions(ctx))


def detect_reserved_device_name(ctx: AnalyzedPath) -> bool:
    if ctx.length == 0:
        return False
    first = ctx.normalized.split("/")[0]
    return first.upper() in RESERVED_DEVICE_NAMES


RULES: tuple[tuple[Rule, Callable[[AnalyzedPath], bool]], ...] = (
    (Rule.PARENT_TRAVERSAL, detect_parent_traversal),
    (Rule.PERCENT_ENCODING, detect_percent_encoding),
    (Rule.ABSOLUTE_PATH, detect_absolute_path),
    (Rule.TILDE_EXPANSION, detect_tilde_expansion),
    (Rule.COLON_PATTERN, detect_colon_pattern),
    (Rule.RESERVED_DEVICE_NAME, detect_reserved_device_name),
)
