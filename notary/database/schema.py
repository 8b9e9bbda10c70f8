"""DDL for the four notary collections. Safe to run on every boot."""

from notary.database.connection import get_connection

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        hash CHAR(64) PRIMARY KEY,
        object_id TEXT NOT NULL,
        token_id TEXT NOT NULL,
        summary TEXT NOT NULL DEFAULT '',
        timestamp_ms BIGINT NOT NULL,
        filename TEXT NOT NULL,
        payment_ref TEXT NOT NULL,
        payer_address TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS used_transactions (
        payment_ref TEXT PRIMARY KEY,
        payer_address TEXT NOT NULL,
        timestamp_ms BIGINT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pending_hashes (
        hash CHAR(64) PRIMARY KEY,
        started_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attestations (
        id BIGSERIAL PRIMARY KEY,
        hash CHAR(64) NOT NULL,
        attestation_object_id TEXT NOT NULL,
        source_object_id TEXT NOT NULL,
        timestamp_ms BIGINT NOT NULL,
        signer_public_key TEXT NOT NULL,
        signature TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS attestations_hash_idx ON attestations (hash)",
)


def ensure_schema() -> None:
    """Create the notary tables if they do not exist yet."""
    with get_connection() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(statement)
        conn.commit()
