"""Integrity checks run against a published notarization record."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CheckResult:
    id: str
    level: str
    message: str


IntegrityCheck = Callable[[dict[str, Any], str], CheckResult | None]


def no_summary(metadata: dict[str, Any], expected_hash: str) -> CheckResult | None:
    if not metadata.get("summary"):
        return CheckResult(id="no_summary", level="info", message="No summary")
    return None


def no_text(metadata: dict[str, Any], expected_hash: str) -> CheckResult | None:
    if not metadata.get("text_excerpt"):
        return CheckResult(id="no_text", level="info", message="No extractable text")
    return None


def hash_mismatch(metadata: dict[str, Any], expected_hash: str) -> CheckResult | None:
    recorded = str(metadata.get("hash", "")).lower().removeprefix("0x")
    if recorded != expected_hash:
        return CheckResult(
            id="hash_mismatch",
            level="error",
            message=f"Record hash {recorded or '(missing)'} differs from {expected_hash}",
        )
    return None


DEFAULT_CHECKS: tuple[IntegrityCheck, ...] = (no_summary, no_text, hash_mismatch)


def run_checks(
    metadata: dict[str, Any],
    expected_hash: str,
    checks: Sequence[IntegrityCheck] = DEFAULT_CHECKS,
) -> list[CheckResult]:
    results = []
    for check in checks:
        result = check(metadata, expected_hash)
        if result is not None:
            results.append(result)
    return results
