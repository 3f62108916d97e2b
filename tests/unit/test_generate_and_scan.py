from __future__ import annotations

import io
import zipfile
from pathlib import Path

import httpx
import pytest

from zippys.package.zip import (
    DEFAULT_PAYLOADS,
    make_traversal_zip,
    placeholder_content,
    traversal_entry_name,
)
from zippys.security.archive import ArchiveScanError, scan_source, scan_sources, scan_zip


def _zip_bytes(names: list[str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as z:
        for n in names:
            z.writestr(n, b"x")
    return buf.getvalue()


def _write_zip(path: Path, names: list[str]) -> Path:
    path.write_bytes(_zip_bytes(names))
    return path


def test_traversal_entry_name() -> None:
    assert traversal_entry_name("etc/passwd", 0) == "etc/passwd"
    assert traversal_entry_name("../../../etc/passwd", 3) == "../../../../../../etc/passwd"
    with pytest.raises(ValueError):
        traversal_entry_name("x", -1)


def test_generate_writes_prefixed_entries(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "evil.zip"
    result = make_traversal_zip(out, ["../../evil.txt", "a\\b.txt"], depth=2)

    assert out.exists()
    assert result.path == str(out)
    assert result.entries == ["../../../../evil.txt", "../../a\\b.txt"]
    with zipfile.ZipFile(out) as z:
        assert [i.orig_filename for i in z.infolist()] == result.entries
        body = z.read(z.infolist()[0]).decode()
        assert body == placeholder_content("../../evil.txt")
        assert "malicious content" in body.lower()


def test_generate_falls_back_to_default_payloads(tmp_path: Path) -> None:
    result = make_traversal_zip(tmp_path / "d.zip", [], depth=1)
    assert result.entries == ["../" + p for p in DEFAULT_PAYLOADS]


def test_generate_then_scan_reports_the_literal_entry(tmp_path: Path) -> None:
    out = tmp_path / "poc.zip"
    make_traversal_zip(out, ["../../../etc/passwd"], depth=3)

    report = scan_zip(out)
    assert report.status == "vulnerable"
    assert report.entries == 1
    assert report.vulnerable_paths == ["../../../../../../etc/passwd"]


def test_safe_archive_reports_nothing(tmp_path: Path) -> None:
    report = scan_zip(_write_zip(tmp_path / "ok.zip", ["safe/file.txt"]))
    assert report.status == "safe"
    assert not report.vulnerable
    assert report.vulnerable_paths == []
    assert report.error is None


def test_scan_collects_every_vulnerable_entry_in_order(tmp_path: Path) -> None:
    names = ["ok.txt", "../a", "dir/b.txt", "/etc/shadow", "C:\\boot.ini", "CON"]
    report = scan_zip(_write_zip(tmp_path / "mixed.zip", names))
    assert report.entries == 6
    assert report.vulnerable_paths == ["../a", "/etc/shadow", "C:\\boot.ini", "CON"]


def test_scan_missing_archive_raises(tmp_path: Path) -> None:
    with pytest.raises(ArchiveScanError):
        scan_zip(tmp_path / "missing.zip")


def test_scan_garbage_raises(tmp_path: Path) -> None:
    bad = tmp_path / "bad.zip"
    bad.write_bytes(b"this is not a zip archive")
    with pytest.raises(ArchiveScanError) as exc_info:
        scan_zip(bad)
    assert isinstance(exc_info.value.__cause__, zipfile.BadZipFile)


def test_scan_sources_keeps_errors_distinct(tmp_path: Path) -> None:
    good = _write_zip(tmp_path / "good.zip", ["fine.txt"])
    bad = tmp_path / "bad.zip"
    bad.write_bytes(b"nope")

    reports = scan_sources([str(bad), str(good)])
    assert [r.status for r in reports] == ["error", "safe"]
    assert reports[0].source == str(bad)
    assert reports[0].error
    assert reports[0].vulnerable_paths == []


def test_scan_remote_source(tmp_path: Path, monkeypatch) -> None:
    payload = _zip_bytes(["../../evil.sh", "readme.md"])
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/bundle.zip"
        return httpx.Response(200, content=payload)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        report = scan_source("https://example.test/bundle.zip", client=client)

    assert report.source == "https://example.test/bundle.zip"
    assert report.vulnerable_paths == ["../../evil.sh"]
    # temporary download is removed
    assert list(tmp_path.iterdir()) == []


def test_scan_remote_http_error_is_reported(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ArchiveScanError):
            scan_source("http://example.test/missing.zip", client=client)
        reports = scan_sources(["http://example.test/missing.zip"], client=client)

    assert reports[0].status == "error"
    assert list(tmp_path.iterdir()) == []


def test_generate_rejects_nul_in_payload(tmp_path: Path) -> None:
    out = tmp_path / "nul.zip"
    with pytest.raises(ValueError):
        traversal_entry_name("evil\x00/../../x", 1)
    with pytest.raises(ValueError):
        make_traversal_zip(out, ["evil\x00/../../x"], depth=1)
    assert not out.exists()


def test_undecodable_entry_name_is_an_error_report(tmp_path: Path) -> None:
    # a non-ASCII name makes zipfile set the UTF-8 flag; swap in invalid bytes
    placeholder = "ééx"
    data = _zip_bytes([placeholder])
    encoded = placeholder.encode("utf-8")
    bad_name = b"\xff\xfe..x"
    assert len(bad_name) == len(encoded)
    bad = tmp_path / "bad-utf8.zip"
    bad.write_bytes(data.replace(encoded, bad_name))
    good = _write_zip(tmp_path / "good.zip", ["fine.txt"])

    with pytest.raises(ArchiveScanError):
        scan_zip(bad)

    reports = scan_sources([str(bad), str(good)])
    assert [r.status for r in reports] == ["error", "safe"]
    assert reports[0].error
