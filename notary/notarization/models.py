from dataclasses import dataclass, field

from notary.database.models import AttestationEntry, DocumentRecord


@dataclass(frozen=True)
class NotarizationRequest:
    """Input of one notarization attempt."""

    file_bytes: bytes
    filename: str
    payer_address: str
    payment_ref: str | None = None


@dataclass(frozen=True)
class NotarizationResult:
    """Outcome returned to the caller for a first-time or duplicate upload."""

    duplicate: bool
    hash: str
    object_id: str
    token_id: str
    summary: str
    timestamp: int
    filename: str = ""

    @classmethod
    def from_record(cls, record: DocumentRecord, duplicate: bool) -> "NotarizationResult":
        return cls(
            duplicate=duplicate,
            hash=record.hash,
            object_id=record.object_id,
            token_id=record.token_id,
            summary=record.summary,
            timestamp=record.timestamp,
            filename=record.filename,
        )


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking uploaded content against the notarized records."""

    matched: bool
    hash: str
    record: DocumentRecord | None = None
    attestations: list[AttestationEntry] = field(default_factory=list)
