"""Schema validation for emitted reports."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator

from zippys.types import ScanReport


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _scan_report_schema() -> dict:
    return _load_schema("zippys.schema", "scan-report.schema.json")


def validate_scan_reports(data: list) -> None:
    Draft202012Validator(_scan_report_schema()).validate(data)


def dump_scan_reports(reports: list[ScanReport]) -> str:
    """Serialize *reports* to JSON, validating against the report schema first."""
    data = [r.model_dump(mode="json") for r in reports]
    validate_scan_reports(data)
    return json.dumps(data, indent=2, ensure_ascii=False)
