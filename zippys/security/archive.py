"""Archive auditing: report entry names that would escape an extraction dir.

Sources are local zip paths or http(s) URLs. Remote archives are downloaded to
a temporary file that is removed once the scan finishes, whatever the outcome.
A source that cannot be read is reported as an error, never as safe.
"""

from __future__ import annotations

import os
import tempfile
import zipfile
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlparse

import httpx

from zippys.detect.base import classify
from zippys.logging import get_logger
from zippys.types import ScanReport

log = get_logger(__name__)

DOWNLOAD_TIMEOUT = 60


class ArchiveScanError(RuntimeError):
    pass


def _looks_like_url(s: str) -> bool:
    return urlparse(s).scheme in {"http", "https"}


def scan_zip(zip_path: Path, source: str | None = None) -> ScanReport:
    """Classify every entry name in *zip_path*.

    Raises ArchiveScanError if the archive is missing or malformed.
    """
    label = source or str(zip_path)
    vulnerable: list[str] = []
    try:
        with zipfile.ZipFile(zip_path) as z:
            infos = z.infolist()
            for m in infos:
                # orig_filename keeps anything after an embedded NUL
                if classify(m.orig_filename):
                    log.debug(f"{label}: vulnerable entry {m.orig_filename!r}")
                    vulnerable.append(m.orig_filename)
    except (zipfile.BadZipFile, OSError, ValueError) as exc:
        # ValueError covers undecodable entry names (UTF-8 flag set, bad bytes)
        raise ArchiveScanError(f"cannot read {label}: {exc}") from exc

    log.info(f"{label}: {len(infos)} entries, {len(vulnerable)} vulnerable")
    return ScanReport(
        source=label,
        status="vulnerable" if vulnerable else "safe",
        entries=len(infos),
        vulnerable_paths=vulnerable,
    )


def _download(url: str, client: httpx.Client) -> Path:
    fd, name = tempfile.mkstemp(prefix="zippys-download-", suffix=".zip")
    tmpf = Path(name)
    try:
        with os.fdopen(fd, "wb") as out:
            with client.stream("GET", url) as r:
                r.raise_for_status()
                for chunk in r.iter_bytes():
                    out.write(chunk)
    except BaseException:
        tmpf.unlink(missing_ok=True)
        raise
    return tmpf


def scan_source(source: str, client: httpx.Client | None = None) -> ScanReport:
    """Scan a local path or an http(s) URL."""
    if not _looks_like_url(source):
        return scan_zip(Path(source), source=source)

    owns_client = client is None
    client = client or httpx.Client(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True)
    try:
        try:
            tmpf = _download(source, client)
        except httpx.HTTPError as exc:
            raise ArchiveScanError(f"cannot download {source}: {exc}") from exc
        try:
            return scan_zip(tmpf, source=source)
        finally:
            tmpf.unlink(missing_ok=True)
    finally:
        if owns_client:
            client.close()


def scan_sources(sources: Iterable[str], client: httpx.Client | None = None) -> list[ScanReport]:
    """Scan each source; failures become `status="error"` reports."""
    reports: list[ScanReport] = []
    for source in sources:
        try:
            reports.append(scan_source(source, client=client))
        except ArchiveScanError as exc:
            log.error(str(exc))
            reports.append(ScanReport(source=source, status="error", error=str(exc)))
    return reports
