"""Shared Pydantic models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ScanReport(BaseModel):
    source: str
    status: Literal["safe", "vulnerable", "error"]
    entries: int = 0
    vulnerable_paths: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def vulnerable(self) -> bool:
        return self.status == "vulnerable"


class GenerateResult(BaseModel):
    path: str
    depth: int
    entries: list[str]


class SelfTestCase(BaseModel):
    path: str
    vulnerable: bool
    reason: str


class SelfTestResult(BaseModel):
    case: SelfTestCase
    got: bool
    rule: str | None = None

    @property
    def passed(self) -> bool:
        return self.got == self.case.vulnerable


class SelfTestSummary(BaseModel):
    results: list[SelfTestResult] = Field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return len(self.results) - self.passed
