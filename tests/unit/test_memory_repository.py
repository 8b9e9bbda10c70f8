import pytest

from notary.database.models import AttestationEntry, DocumentRecord
from notary.database.repositories.memory_repository import MemoryNotaryRepository
from notary.notarization.exceptions import ConflictError, PaymentReusedError


def _record(digest: str = "a" * 64, payment_ref: str = "0xpay") -> DocumentRecord:
    return DocumentRecord(
        hash=digest,
        object_id="0.0.10",
        token_id="0.0.11",
        summary="",
        timestamp=1,
        filename="f.txt",
        payment_ref=payment_ref,
        payer_address="0xaa",
    )


def _attestation(source_object_id: str = "0.0.10") -> AttestationEntry:
    return AttestationEntry(
        hash="a" * 64,
        attestation_object_id="0.0.20",
        source_object_id=source_object_id,
        timestamp=2,
        signer_public_key="pk",
        signature="sig",
    )


class TestPending:
    def test_first_claim_wins(self) -> None:
        repo = MemoryNotaryRepository()
        assert repo.try_add_pending("h") is True
        assert repo.try_add_pending("h") is False
        assert repo.is_pending("h")

    def test_remove_allows_reclaim(self) -> None:
        repo = MemoryNotaryRepository()
        repo.try_add_pending("h")
        repo.remove_pending("h")
        assert not repo.is_pending("h")
        assert repo.try_add_pending("h") is True

    def test_remove_absent_is_noop(self) -> None:
        MemoryNotaryRepository().remove_pending("missing")

    def test_clear_stale_pending(self) -> None:
        repo = MemoryNotaryRepository()
        repo.try_add_pending("h")
        assert repo.clear_stale_pending(3600) == 0
        assert repo.clear_stale_pending(0) == 1
        assert not repo.is_pending("h")


class TestCommitNotarization:
    def test_stores_document_and_consumes_payment(self) -> None:
        repo = MemoryNotaryRepository()
        repo.commit_notarization(_record())
        assert repo.get_document("a" * 64) == _record()
        assert repo.document_exists("a" * 64)
        assert repo.is_transaction_used("0xpay")
        used = repo.used_transaction("0xpay")
        assert used is not None
        assert used.payer_address == "0xaa"

    def test_reused_payment_rejected_and_nothing_stored(self) -> None:
        repo = MemoryNotaryRepository()
        repo.commit_notarization(_record())
        with pytest.raises(PaymentReusedError):
            repo.commit_notarization(_record(digest="b" * 64))
        assert repo.get_document("b" * 64) is None

    def test_existing_document_rejected(self) -> None:
        repo = MemoryNotaryRepository()
        repo.commit_notarization(_record())
        with pytest.raises(ConflictError):
            repo.commit_notarization(_record(payment_ref="0xother"))
        assert not repo.is_transaction_used("0xother")


class TestAttestations:
    def test_list_in_insertion_order(self) -> None:
        repo = MemoryNotaryRepository()
        repo.add_attestation(_attestation("0.0.10"))
        repo.add_attestation(_attestation("0.0.12"))
        sources = [a.source_object_id for a in repo.list_attestations("a" * 64)]
        assert sources == ["0.0.10", "0.0.12"]

    def test_has_attestation_keys_on_source_object(self) -> None:
        repo = MemoryNotaryRepository()
        repo.add_attestation(_attestation("0.0.10"))
        assert repo.has_attestation("a" * 64, "0.0.10")
        assert not repo.has_attestation("a" * 64, "0.0.99")

    def test_unknown_hash_has_no_attestations(self) -> None:
        assert MemoryNotaryRepository().list_attestations("c" * 64) == []
