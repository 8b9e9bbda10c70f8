import psycopg
from psycopg.rows import dict_row

from notary.database.connection import get_connection
from notary.database.models import AttestationEntry, DocumentRecord
from notary.database.repositories.base import NotaryRepository
from notary.notarization.exceptions import ConflictError, PaymentReusedError


class PostgresNotaryRepository(NotaryRepository):
    """Database operations for the documents, used_transactions, pending_hashes
    and attestations tables."""

    def get_document(self, content_hash: str) -> DocumentRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT hash, object_id, token_id, summary, timestamp_ms,
                           filename, payment_ref, payer_address
                    FROM documents
                    WHERE hash = %s
                    """,
                    (content_hash,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return DocumentRecord(
            hash=row["hash"],
            object_id=row["object_id"],
            token_id=row["token_id"],
            summary=row["summary"],
            timestamp=row["timestamp_ms"],
            filename=row["filename"],
            payment_ref=row["payment_ref"],
            payer_address=row["payer_address"],
        )

    def try_add_pending(self, content_hash: str) -> bool:
        """Claim the hash with INSERT ... ON CONFLICT DO NOTHING."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO pending_hashes (hash)
                    VALUES (%s)
                    ON CONFLICT (hash) DO NOTHING
                    """,
                    (content_hash,),
                )
                claimed = cur.rowcount == 1
            conn.commit()
        return claimed

    def remove_pending(self, content_hash: str) -> None:
        with get_connection() as conn:
            conn.execute("DELETE FROM pending_hashes WHERE hash = %s", (content_hash,))
            conn.commit()

    def is_pending(self, content_hash: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT 1 FROM pending_hashes WHERE hash = %s",
                    (content_hash,),
                )
                return cur.fetchone() is not None

    def clear_stale_pending(self, max_age_seconds: float) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM pending_hashes
                    WHERE started_at <= NOW() - make_interval(secs => %s)
                    """,
                    (max_age_seconds,),
                )
                removed = cur.rowcount
            conn.commit()
        return removed

    def is_transaction_used(self, payment_ref: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT 1 FROM used_transactions WHERE payment_ref = %s",
                    (payment_ref,),
                )
                return cur.fetchone() is not None

    def commit_notarization(self, record: DocumentRecord) -> None:
        """Insert the document and consume its payment in one transaction.

        Raises:
            ConflictError: if the document hash already has a row.
            PaymentReusedError: if the payment reference already has a row.
        """
        with get_connection() as conn:
            try:
                with conn.transaction():
                    conn.execute(
                        """
                        INSERT INTO used_transactions
                            (payment_ref, payer_address, timestamp_ms)
                        VALUES (%s, %s, %s)
                        """,
                        (record.payment_ref, record.payer_address, record.timestamp),
                    )
                    conn.execute(
                        """
                        INSERT INTO documents
                            (hash, object_id, token_id, summary, timestamp_ms,
                             filename, payment_ref, payer_address)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            record.hash,
                            record.object_id,
                            record.token_id,
                            record.summary,
                            record.timestamp,
                            record.filename,
                            record.payment_ref,
                            record.payer_address,
                        ),
                    )
            except psycopg.errors.UniqueViolation as exc:
                if exc.diag.constraint_name == "documents_pkey":
                    raise ConflictError(
                        f"Document {record.hash} is already notarized"
                    ) from exc
                raise PaymentReusedError(
                    f"Payment {record.payment_ref} was already consumed"
                ) from exc

    def add_attestation(self, entry: AttestationEntry) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO attestations
                    (hash, attestation_object_id, source_object_id, timestamp_ms,
                     signer_public_key, signature)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    entry.hash,
                    entry.attestation_object_id,
                    entry.source_object_id,
                    entry.timestamp,
                    entry.signer_public_key,
                    entry.signature,
                ),
            )
            conn.commit()

    def list_attestations(self, content_hash: str) -> list[AttestationEntry]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT hash, attestation_object_id, source_object_id,
                           timestamp_ms, signer_public_key, signature
                    FROM attestations
                    WHERE hash = %s
                    ORDER BY id
                    """,
                    (content_hash,),
                )
                rows = cur.fetchall()

        return [
            AttestationEntry(
                hash=row["hash"],
                attestation_object_id=row["attestation_object_id"],
                source_object_id=row["source_object_id"],
                timestamp=row["timestamp_ms"],
                signer_public_key=row["signer_public_key"],
                signature=row["signature"],
            )
            for row in rows
        ]
