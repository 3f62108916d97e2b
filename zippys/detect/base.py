"""Path classification API and dispatcher.

An archive entry name is analyzed once into an immutable `AnalyzedPath` and then
handed to each detector rule in priority order (see `zippys.detect.rules`).
The first rule that fires decides the verdict; if none fire the path is safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .rules import Rule


@dataclass(frozen=True)
class AnalyzedPath:
    """Shared, read-only view of a path for the detector rules.

    Attributes
    ----------
    raw: str
        The path exactly as stored in the archive.
    normalized: str
        `raw` with backslashes rewritten to `/`. Only the device-name rule
        splits on it; every other rule sees the original separators.
    codepoints: tuple[str, ...]
        One item per Unicode code point of `raw`.
    length: int
        Cached `len(codepoints)`.
    """

    raw: str
    normalized: str = field(init=False)
    codepoints: tuple[str, ...] = field(init=False)
    length: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "normalized", self.raw.replace("\\", "/"))
        object.__setattr__(self, "codepoints", tuple(self.raw))
        object.__setattr__(self, "length", len(self.codepoints))


@dataclass(frozen=True)
class Verdict:
    """Classification outcome; `reason` is the first rule that fired."""

    vulnerable: bool
    reason: Rule | None = None


def analyze(path: str) -> AnalyzedPath:
    return AnalyzedPath(path)


def evaluate(path: str) -> Verdict:
    """Classify *path* and report the first rule that fired, if any."""
    from .rules import RULES

    ctx = analyze(path)
    if ctx.length == 0:
        return Verdict(vulnerable=False)
    for rule, check in RULES:
        if check(ctx):
            return Verdict(vulnerable=True, reason=rule)
    return Verdict(vulnerable=False)


def classify(path: str) -> bool:
    """Return True when *path* could escape an extraction directory."""
    return evaluate(path).vulnerable


def triggered_rules(path: str) -> list[Rule]:
    """Every rule that fires for *path*, in priority order (diagnostics only)."""
    from .rules import RULES

    ctx = analyze(path)
    return [rule for rule, check in RULES if check(ctx)]
