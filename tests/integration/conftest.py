import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from notary.config.settings import Settings
from notary.database.connection import close_pool, get_connection, init_pool
from notary.database.models import AttestationEntry, DocumentRecord
from notary.database.schema import ensure_schema


def _integration_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "notary_test")
    return Settings()


@pytest.fixture(scope="session")
def integration_settings() -> Settings:
    return _integration_settings()


@pytest.fixture(scope="session")
def integration_pool(integration_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(integration_settings)
        ensure_schema()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[dict[str, list[str]], None, None]:
    """Rows to delete after the test, keyed by table: hashes or payment refs."""
    cleanup: dict[str, list[str]] = {
        "documents": [],
        "used_transactions": [],
        "pending_hashes": [],
        "attestations": [],
    }
    yield cleanup
    with get_connection() as conn:
        with conn.cursor() as cur:
            for content_hash in cleanup["attestations"]:
                cur.execute("DELETE FROM attestations WHERE hash = %s", (content_hash,))
            for content_hash in cleanup["documents"]:
                cur.execute("DELETE FROM documents WHERE hash = %s", (content_hash,))
            for payment_ref in cleanup["used_transactions"]:
                cur.execute(
                    "DELETE FROM used_transactions WHERE payment_ref = %s", (payment_ref,)
                )
            for content_hash in cleanup["pending_hashes"]:
                cur.execute("DELETE FROM pending_hashes WHERE hash = %s", (content_hash,))
        conn.commit()


@pytest.fixture
def unique_hash(integration_cleanup: dict[str, list[str]]) -> str:
    digest = uuid.uuid4().hex * 2
    for table in ("documents", "pending_hashes", "attestations"):
        integration_cleanup[table].append(digest)
    return digest


@pytest.fixture
def make_record(integration_cleanup: dict[str, list[str]]) -> Any:
    def _make(content_hash: str, payment_ref: str | None = None) -> DocumentRecord:
        ref = payment_ref or f"0x{uuid.uuid4().hex}"
        integration_cleanup["documents"].append(content_hash)
        integration_cleanup["used_transactions"].append(ref)
        return DocumentRecord(
            hash=content_hash,
            object_id="0.0.5005",
            token_id="0.0.6006",
            summary="- summary",
            timestamp=1_700_000_000_000,
            filename="contract.pdf",
            payment_ref=ref,
            payer_address="0x" + "aa" * 20,
        )

    return _make


@pytest.fixture
def make_attestation() -> Any:
    def _make(content_hash: str, source_object_id: str = "0.0.5005") -> AttestationEntry:
        return AttestationEntry(
            hash=content_hash,
            attestation_object_id="0.0.7007",
            source_object_id=source_object_id,
            timestamp=1_700_000_000_500,
            signer_public_key="ab" * 32,
            signature="c2lnbmF0dXJl",
        )

    return _make
