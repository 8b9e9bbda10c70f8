import json
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from notary.database.models import DocumentRecord
from notary.database.repositories.base import NotaryRepository
from notary.events.broadcaster import Broadcaster
from notary.events.models import DuplicateEvent, NotarizedEvent
from notary.ledger.event_log import EventLog
from notary.ledger.exceptions import LedgerError, LedgerTimeoutError
from notary.ledger.gateway import LedgerGateway
from notary.ledger.object_store import ImmutableObjectStore
from notary.ledger.timeouts import bounded_call
from notary.ledger.token_issuer import ProofTokenIssuer, object_metadata
from notary.logging.logger import Log
from notary.notarization.exceptions import (
    InsufficientOperatorFundsError,
    InvalidInputError,
    PaymentInvalidError,
    PaymentReusedError,
    ServiceError,
    ServiceTimeoutError,
)
from notary.notarization.hashing import content_hash
from notary.notarization.models import NotarizationRequest, NotarizationResult
from notary.notarization.pending import PendingGuard
from notary.payment.models import PaymentRequirement
from notary.payment.verifier import PaymentVerifier, normalize_payment_ref
from notary.processing.content import ContentProcessor, ProcessedContent

METADATA_KIND = "notary.notarization"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class NotarizationPolicy:
    """Commercial and safety parameters of a notarization."""

    recipient: str
    price: int
    min_operator_balance_tinybars: int = 3_000_000_000
    text_excerpt_chars: int = 5000
    timeout_seconds: float = 60.0


class Notarizer:
    """Per-document notarization state machine.

    dedup -> claim pending -> payment -> operator funds -> content processing
    -> publish metadata -> mint proof token -> commit record -> log + notify.

    Publish, mint, commit and log append are separate external effects. If the
    process dies between them, a published object or minted token can exist
    without a committed record or log event; nothing reconciles that.
    """

    def __init__(
        self,
        *,
        repository: NotaryRepository,
        pending: PendingGuard,
        payment_verifier: PaymentVerifier,
        gateway: LedgerGateway,
        object_store: ImmutableObjectStore,
        token_issuer: ProofTokenIssuer,
        event_log: EventLog,
        broadcaster: Broadcaster,
        content_processor: ContentProcessor,
        policy: NotarizationPolicy,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._repository = repository
        self._pending = pending
        self._payment_verifier = payment_verifier
        self._gateway = gateway
        self._object_store = object_store
        self._token_issuer = token_issuer
        self._event_log = event_log
        self._broadcaster = broadcaster
        self._content_processor = content_processor
        self._policy = policy
        self._clock = clock

    def notarize(self, request: NotarizationRequest) -> NotarizationResult:
        if not request.file_bytes:
            raise InvalidInputError("No file")
        digest = content_hash(request.file_bytes)
        Log.info(
            f"Notarize {request.filename}",
            hash=digest,
            payer=request.payer_address,
            payment_ref=request.payment_ref or "(none)",
        )

        duplicate = self._duplicate(digest)
        if duplicate is not None:
            return duplicate

        with self._pending.claim(digest):
            duplicate = self._duplicate(digest)
            if duplicate is not None:
                return duplicate
            return self._notarize_new(digest, request)

    def _duplicate(self, digest: str) -> NotarizationResult | None:
        record = self._repository.get_document(digest)
        if record is None:
            return None
        Log.info("Duplicate upload", hash=digest, object_id=record.object_id)
        event = DuplicateEvent(hash=digest, timestamp=self._clock())
        self._broadcaster.broadcast(event.to_dict(source="local"))
        return NotarizationResult.from_record(record, duplicate=True)

    def _notarize_new(self, digest: str, request: NotarizationRequest) -> NotarizationResult:
        payment_ref = normalize_payment_ref(request.payment_ref or "")
        if not payment_ref:
            raise InvalidInputError("Payment reference missing")
        if self._repository.is_transaction_used(payment_ref):
            raise PaymentReusedError(f"Payment {payment_ref} was already consumed")

        self._verify_payment(payment_ref, request.payer_address)
        self._check_operator_funds()

        content = self._content_processor.process(request.file_bytes, request.filename)
        timestamp = self._clock()
        metadata = self._metadata(digest, request, payment_ref, timestamp, content)

        with self._ledger_step("publish metadata"):
            object_id = self._object_store.publish(metadata)
        with self._ledger_step("mint proof token"):
            token_id = self._token_issuer.mint(object_metadata(object_id))

        record = DocumentRecord(
            hash=digest,
            object_id=object_id,
            token_id=token_id,
            summary=content.summary,
            timestamp=timestamp,
            filename=request.filename,
            payment_ref=payment_ref,
            payer_address=request.payer_address,
        )
        self._repository.commit_notarization(record)
        Log.info("Document notarized", hash=digest, object_id=object_id, token_id=token_id)

        self._announce(NotarizedEvent(
            hash=digest, object_id=object_id, token_id=token_id, timestamp=timestamp
        ))
        return NotarizationResult.from_record(record, duplicate=False)

    def _verify_payment(self, payment_ref: str, payer: str) -> None:
        requirement = PaymentRequirement(
            payer=payer,
            recipient=self._policy.recipient,
            min_amount=self._policy.price,
        )
        try:
            paid = self._payment_verifier.verify(payment_ref, requirement)
        except Exception as exc:
            raise ServiceError(f"Payment lookup failed: {exc}") from exc
        if not paid:
            raise PaymentInvalidError(f"Payment {payment_ref} is invalid")

    def _check_operator_funds(self) -> None:
        with self._ledger_step("operator balance query"):
            balance = bounded_call(
                "operator balance query",
                self._policy.timeout_seconds,
                self._gateway.operator_balance_tinybars,
            )
        if balance < self._policy.min_operator_balance_tinybars:
            raise InsufficientOperatorFundsError(
                f"Operator balance low ({balance} tinybars)"
            )

    def _metadata(
        self,
        digest: str,
        request: NotarizationRequest,
        payment_ref: str,
        timestamp: int,
        content: ProcessedContent,
    ) -> bytes:
        metadata = {
            "kind": METADATA_KIND,
            "hash": digest,
            "filename": request.filename,
            "payer": request.payer_address,
            "payment_ref": payment_ref,
            "timestamp": timestamp,
            "summary": content.summary,
            "fields": content.fields.to_dict(),
            "text_excerpt": content.text[: self._policy.text_excerpt_chars],
        }
        return json.dumps(metadata, indent=2, ensure_ascii=False).encode("utf-8")

    def _announce(self, event: NotarizedEvent) -> None:
        try:
            with self._ledger_step("publish log event"):
                self._event_log.publish(event.to_dict())
        except ServiceError as exc:
            # The record is committed; the attestation agent will not see it.
            Log.error(f"Notarized event not logged: {exc}", hash=event.hash)
        self._broadcaster.broadcast(event.to_dict(source="local"))

    @staticmethod
    @contextmanager
    def _ledger_step(step: str) -> Iterator[None]:
        try:
            yield
        except LedgerTimeoutError as exc:
            raise ServiceTimeoutError(f"{step} timed out: {exc}") from exc
        except LedgerError as exc:
            raise ServiceError(f"{step} failed: {exc}") from exc
