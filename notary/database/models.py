from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentRecord:
    """Represents a row from the documents table. Never mutated once stored."""

    hash: str
    object_id: str
    token_id: str
    summary: str
    timestamp: int
    filename: str
    payment_ref: str
    payer_address: str


@dataclass(frozen=True)
class UsedTransaction:
    """Represents a row from the used_transactions table."""

    payment_ref: str
    payer_address: str
    timestamp: int


@dataclass(frozen=True)
class AttestationEntry:
    """Represents a row from the attestations table."""

    hash: str
    attestation_object_id: str
    source_object_id: str
    timestamp: int
    signer_public_key: str
    signature: str
