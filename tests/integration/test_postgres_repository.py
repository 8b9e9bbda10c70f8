import pytest

from notary.database.connection import get_connection
from notary.database.repositories.postgres_repository import PostgresNotaryRepository
from notary.notarization.exceptions import ConflictError, PaymentReusedError


@pytest.mark.integration
class TestPendingHashes:
    def test_claim_is_exclusive(self, unique_hash: str) -> None:
        repo = PostgresNotaryRepository()
        assert repo.try_add_pending(unique_hash) is True
        assert repo.try_add_pending(unique_hash) is False
        assert repo.is_pending(unique_hash)

    def test_remove_releases_claim(self, unique_hash: str) -> None:
        repo = PostgresNotaryRepository()
        repo.try_add_pending(unique_hash)
        repo.remove_pending(unique_hash)
        assert not repo.is_pending(unique_hash)
        assert repo.try_add_pending(unique_hash) is True

    def test_clear_stale_pending(self, unique_hash: str) -> None:
        repo = PostgresNotaryRepository()
        repo.try_add_pending(unique_hash)
        with get_connection() as conn:
            conn.execute(
                "UPDATE pending_hashes SET started_at = NOW() - INTERVAL '2 hours' WHERE hash = %s",
                (unique_hash,),
            )
            conn.commit()
        assert repo.clear_stale_pending(3600) >= 1
        assert not repo.is_pending(unique_hash)

    def test_fresh_pending_survives_cleanup(self, unique_hash: str) -> None:
        repo = PostgresNotaryRepository()
        repo.try_add_pending(unique_hash)
        repo.clear_stale_pending(3600)
        assert repo.is_pending(unique_hash)


@pytest.mark.integration
class TestCommitNotarization:
    def test_round_trip(self, unique_hash: str, make_record) -> None:
        repo = PostgresNotaryRepository()
        record = make_record(unique_hash)
        repo.commit_notarization(record)
        assert repo.get_document(unique_hash) == record
        assert repo.is_transaction_used(record.payment_ref)

    def test_missing_document(self, unique_hash: str) -> None:
        repo = PostgresNotaryRepository()
        assert repo.get_document(unique_hash) is None
        assert not repo.document_exists(unique_hash)

    def test_reused_payment_rolls_back(self, unique_hash: str, make_record, integration_cleanup) -> None:
        repo = PostgresNotaryRepository()
        first = make_record(unique_hash)
        repo.commit_notarization(first)
        other_hash = unique_hash[::-1]
        integration_cleanup["documents"].append(other_hash)

        with pytest.raises(PaymentReusedError):
            repo.commit_notarization(make_record(other_hash, payment_ref=first.payment_ref))

        assert repo.get_document(other_hash) is None

    def test_existing_document_rolls_back(self, unique_hash: str, make_record) -> None:
        repo = PostgresNotaryRepository()
        repo.commit_notarization(make_record(unique_hash))
        second = make_record(unique_hash)

        with pytest.raises(ConflictError):
            repo.commit_notarization(second)

        assert not repo.is_transaction_used(second.payment_ref)


@pytest.mark.integration
class TestAttestations:
    def test_listed_in_insertion_order(self, unique_hash: str, make_attestation) -> None:
        repo = PostgresNotaryRepository()
        repo.add_attestation(make_attestation(unique_hash, "0.0.1"))
        repo.add_attestation(make_attestation(unique_hash, "0.0.2"))
        entries = repo.list_attestations(unique_hash)
        assert [e.source_object_id for e in entries] == ["0.0.1", "0.0.2"]
        assert entries[0] == make_attestation(unique_hash, "0.0.1")

    def test_has_attestation(self, unique_hash: str, make_attestation) -> None:
        repo = PostgresNotaryRepository()
        repo.add_attestation(make_attestation(unique_hash))
        assert repo.has_attestation(unique_hash, "0.0.5005")
        assert not repo.has_attestation(unique_hash, "0.0.9999")
