"""Deterministic field extraction: amounts, dates and IBANs found in text."""

import re
from dataclasses import dataclass, field

_AMOUNT = re.compile(r"\b(\d{1,3}(?:[.,]\d{3})*(?:[.,]\d{2}))\b")
_DATE = re.compile(r"\b(20\d{2}[-/](?:0?[1-9]|1[0-2])[-/](?:0?[1-9]|[12]\d|3[01]))\b")
_IBAN = re.compile(r"\b([A-Z]{2}\d{2}[A-Z0-9]{11,30})\b")

MAX_AMOUNTS = 5
MAX_DATES = 5
MAX_IBANS = 3


@dataclass(frozen=True)
class ExtractedFields:
    amounts: list[str] = field(default_factory=list)
    dates: list[str] = field(default_factory=list)
    ibans: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {"amounts": list(self.amounts), "dates": list(self.dates), "ibans": list(self.ibans)}


def extract_fields(text: str) -> ExtractedFields:
    return ExtractedFields(
        amounts=_first_matches(_AMOUNT, text, MAX_AMOUNTS),
        dates=_first_matches(_DATE, text, MAX_DATES),
        ibans=_first_matches(_IBAN, text, MAX_IBANS),
    )


def _first_matches(pattern: re.Pattern[str], text: str, limit: int) -> list[str]:
    found = []
    for match in pattern.finditer(text):
        found.append(match.group(1))
        if len(found) == limit:
            break
    return found
