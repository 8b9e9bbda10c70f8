from dataclasses import dataclass

from notary.attestation.agent import AttestationAgent
from notary.attestation.signer import Signer
from notary.config.settings import Settings
from notary.database.repositories.base import NotaryRepository
from notary.database.repositories.factory import RepositoryFactory
from notary.events.broadcaster import Broadcaster, Listener
from notary.events.models import HelloEvent
from notary.extraction.pdf_adapters import PdfExtractorFactory
from notary.extraction.text import TextExtractor
from notary.ledger.event_log import EventLog
from notary.ledger.factory import LedgerGatewayFactory
from notary.ledger.gateway import LedgerGateway
from notary.ledger.object_store import ImmutableObjectStore
from notary.ledger.token_issuer import ProofTokenIssuer
from notary.logging.logger import Log
from notary.notarization.exceptions import InvalidInputError
from notary.notarization.hashing import content_hash, normalize_hash
from notary.notarization.models import (
    NotarizationRequest,
    NotarizationResult,
    VerificationResult,
)
from notary.notarization.orchestrator import NotarizationPolicy, Notarizer, now_ms
from notary.notarization.pending import PendingGuard
from notary.payment.sources import (
    MemoryTransactionSource,
    TransactionSource,
    Web3TransactionSource,
)
from notary.payment.verifier import PaymentVerifier
from notary.processing.content import ContentProcessor
from notary.summarization.base import BaseSummarizer
from notary.summarization.factory import SummarizerFactory


@dataclass(frozen=True)
class PublicConfig:
    """What clients need to pay for and follow notarizations."""

    recipient: str
    price: int
    topic_id: str | None


class NotaryService:
    """Request surface of the notary: config, check, notarize, verify, live feed."""

    def __init__(
        self,
        *,
        settings: Settings,
        repository: NotaryRepository,
        notarizer: Notarizer,
        event_log: EventLog,
        broadcaster: Broadcaster,
        agent: AttestationAgent,
    ) -> None:
        self._settings = settings
        self._repository = repository
        self._notarizer = notarizer
        self._event_log = event_log
        self._broadcaster = broadcaster
        self._agent = agent

    @property
    def agent(self) -> AttestationAgent:
        return self._agent

    def start(self) -> None:
        """Release orphaned pending markers, make sure the topic exists, start the agent."""
        released = self._repository.clear_stale_pending(self._settings.pending_stale_seconds)
        if released:
            Log.warning(f"Released {released} stale pending notarizations")
        topic_id = self._event_log.ensure_topic()
        self._agent.start()
        Log.info("Notary service started", topic_id=topic_id)

    def stop(self) -> None:
        self._agent.stop()

    def get_config(self) -> PublicConfig:
        return PublicConfig(
            recipient=self._settings.treasury_address.lower(),
            price=self._settings.price_wei,
            topic_id=self._event_log.topic_id,
        )

    def check(self, hash_value: str) -> bool:
        try:
            digest = normalize_hash(hash_value)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc
        return self._repository.document_exists(digest)

    def notarize(
        self,
        file_bytes: bytes,
        filename: str,
        payer_address: str,
        payment_ref: str | None = None,
    ) -> NotarizationResult:
        if len(file_bytes) > self._settings.max_file_bytes:
            raise InvalidInputError(
                f"File exceeds the {self._settings.max_file_mb} MB limit"
            )
        request = NotarizationRequest(
            file_bytes=file_bytes,
            filename=filename or "document",
            payer_address=payer_address.strip().lower(),
            payment_ref=payment_ref,
        )
        return self._notarizer.notarize(request)

    def verify(self, file_bytes: bytes) -> VerificationResult:
        if not file_bytes:
            raise InvalidInputError("No file")
        digest = content_hash(file_bytes)
        record = self._repository.get_document(digest)
        if record is None:
            return VerificationResult(matched=False, hash=digest)
        return VerificationResult(
            matched=True,
            hash=digest,
            record=record,
            attestations=self._repository.list_attestations(digest),
        )

    def open_feed(self) -> Listener:
        """Register a live listener; its first message is the ``hello`` handshake."""
        hello = HelloEvent(now=now_ms(), topic_id=self._event_log.topic_id)
        return self._broadcaster.subscribe(greeting=hello.to_dict())

    def close_feed(self, listener: Listener) -> None:
        self._broadcaster.unsubscribe(listener)


def build_service(
    settings: Settings,
    *,
    gateway: LedgerGateway | None = None,
    repository: NotaryRepository | None = None,
    transaction_source: TransactionSource | None = None,
    summarizer: BaseSummarizer | None = None,
    signer: Signer | None = None,
) -> NotaryService:
    """Build a NotaryService with all required adapters; arguments override settings."""
    gateway = gateway or LedgerGatewayFactory.create(settings)
    repository = repository or RepositoryFactory.create(settings)
    transaction_source = transaction_source or _transaction_source(settings)
    summarizer = summarizer or SummarizerFactory.create(settings)
    signer = signer or _signer(settings, gateway)

    timeout = settings.service_timeout_seconds
    broadcaster = Broadcaster()
    object_store = ImmutableObjectStore(
        gateway, chunk_bytes=settings.object_chunk_bytes, timeout_seconds=timeout
    )
    event_log = EventLog(gateway, topic_id=settings.hedera_topic_id, timeout_seconds=timeout)
    content_processor = ContentProcessor(
        TextExtractor(
            PdfExtractorFactory.create(settings.pdf_engine),
            max_chars=settings.max_text_chars,
        ),
        summarizer,
    )
    notarizer = Notarizer(
        repository=repository,
        pending=PendingGuard(repository),
        payment_verifier=PaymentVerifier(
            transaction_source,
            attempts=settings.payment_poll_attempts,
            interval_seconds=settings.payment_poll_interval_seconds,
        ),
        gateway=gateway,
        object_store=object_store,
        token_issuer=ProofTokenIssuer(gateway, timeout_seconds=timeout),
        event_log=event_log,
        broadcaster=broadcaster,
        content_processor=content_processor,
        policy=NotarizationPolicy(
            recipient=settings.treasury_address,
            price=settings.price_wei,
            min_operator_balance_tinybars=settings.operator_min_balance_tinybars,
            text_excerpt_chars=settings.text_excerpt_chars,
            timeout_seconds=timeout,
        ),
    )
    agent = AttestationAgent(
        repository=repository,
        event_log=event_log,
        object_store=object_store,
        signer=signer,
        broadcaster=broadcaster,
        ready_attempts=settings.attestation_ready_attempts,
        ready_interval_seconds=settings.attestation_warmup_seconds,
        restart_backoff_seconds=settings.attestation_restart_backoff_seconds,
    )
    return NotaryService(
        settings=settings,
        repository=repository,
        notarizer=notarizer,
        event_log=event_log,
        broadcaster=broadcaster,
        agent=agent,
    )


def _transaction_source(settings: Settings) -> TransactionSource:
    if settings.ledger_backend.lower() == "memory":
        return MemoryTransactionSource()
    return Web3TransactionSource(settings.payment_rpc_url)


def _signer(settings: Settings, gateway: LedgerGateway) -> Signer:
    if settings.attestation_signing_key:
        signer = Signer.from_hex(settings.attestation_signing_key)
    elif settings.ledger_backend.lower() == "memory":
        # The in-memory ledger has no real operator key to sign with.
        Log.warning("No signing key configured, using an ephemeral attestation key")
        return Signer.generate()
    elif settings.hedera_operator_key:
        signer = Signer.for_operator(
            settings.hedera_operator_key, gateway.operator_public_key()
        )
    else:
        raise ValueError("attestation_signing_key or hedera_operator_key is required")
    Log.info(
        "Attestation signer loaded",
        algorithm=signer.algorithm,
        public_key=signer.public_key_hex,
    )
    return signer
