"""Asynchronous attestation of notarized documents.

The agent subscribes to the event log. For every ``notarized`` event it
fetches the published record, runs the integrity checks, signs the resulting
statement with the service key, publishes it as a second immutable object and
announces an ``attested`` event. A failure drops that event; there is no
retry queue.
"""

import json
import threading
from collections.abc import Callable, Sequence
from dataclasses import asdict
from datetime import datetime
from typing import Any

from notary.attestation.checks import DEFAULT_CHECKS, IntegrityCheck, run_checks
from notary.attestation.signer import Signer
from notary.database.models import AttestationEntry
from notary.database.repositories.base import NotaryRepository
from notary.events.broadcaster import Broadcaster
from notary.events.models import AttestedEvent, NotarizedEvent, parse_event
from notary.ledger.event_log import EventLog
from notary.ledger.gateway import TopicMessage
from notary.ledger.object_store import ImmutableObjectStore
from notary.logging.logger import Log
from notary.notarization.hashing import normalize_hash
from notary.notarization.orchestrator import now_ms

ATTESTATION_KIND = "notary.attestation"


class AttestationAgent:
    """Long-lived log subscriber producing signed attestations."""

    def __init__(
        self,
        *,
        repository: NotaryRepository,
        event_log: EventLog,
        object_store: ImmutableObjectStore,
        signer: Signer,
        broadcaster: Broadcaster,
        checks: Sequence[IntegrityCheck] = DEFAULT_CHECKS,
        ready_attempts: int = 10,
        ready_interval_seconds: float = 3.0,
        restart_backoff_seconds: float = 5.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._repository = repository
        self._event_log = event_log
        self._object_store = object_store
        self._signer = signer
        self._broadcaster = broadcaster
        self._checks = checks
        self._ready_attempts = ready_attempts
        self._ready_interval_seconds = ready_interval_seconds
        self._restart_backoff_seconds = restart_backoff_seconds
        self._clock = clock
        self._stopped = threading.Event()
        self._subscribed = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_seen: datetime | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def wait_subscribed(self, timeout: float | None = None) -> bool:
        """Block until the log subscription is live; False on timeout."""
        return self._subscribed.wait(timeout)

    def start(self) -> None:
        """Start the supervised subscription on a background thread."""
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._supervise, name="attestation-agent", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _supervise(self) -> None:
        self._wait_for_log()
        while not self._stopped.is_set():
            failed = threading.Event()

            def _on_error(exc: Exception) -> None:
                Log.error(f"Event log subscription failed: {exc}")
                failed.set()

            try:
                subscription = self._event_log.subscribe(
                    self._on_message, _on_error, start_time=self._last_seen
                )
            except Exception as exc:  # noqa: BLE001
                _on_error(exc)
            else:
                Log.info("Attestation agent subscribed", topic_id=self._event_log.topic_id)
                self._subscribed.set()
                while not self._stopped.is_set() and not failed.wait(0.5):
                    pass
                self._subscribed.clear()
                subscription.cancel()

            if self._stopped.is_set():
                break
            Log.warning(f"Restarting subscription in {self._restart_backoff_seconds}s")
            self._stopped.wait(self._restart_backoff_seconds)
        Log.info("Attestation agent stopped")

    def _wait_for_log(self) -> None:
        while not self._stopped.is_set():
            try:
                ready = self._event_log.wait_until_ready(
                    self._ready_attempts,
                    self._ready_interval_seconds,
                    sleep=self._stopped.wait,
                )
            except Exception as exc:  # noqa: BLE001
                Log.warning(f"Event log readiness probe failed: {exc}")
                ready = False
            if ready:
                return
            Log.warning("Event log not queryable yet, still waiting")
            self._stopped.wait(self._ready_interval_seconds)

    def _on_message(self, payload: dict[str, Any], message: TopicMessage) -> None:
        self._last_seen = message.consensus_timestamp
        self.handle_event(payload)

    def handle_event(self, payload: dict[str, Any]) -> None:
        """Relay a log event to live listeners and attest it if it is a notarization."""
        self._broadcaster.broadcast({**payload, "source": "log"})
        event = parse_event(payload)
        if not isinstance(event, NotarizedEvent):
            return
        try:
            self.attest(event)
        except Exception:  # noqa: BLE001
            Log.exception("Attestation failed, event dropped", hash=event.hash)

    def attest(self, event: NotarizedEvent) -> AttestationEntry | None:
        """Attest one notarization; None if it was attested before (log replay)."""
        digest = normalize_hash(event.hash)
        if self._repository.has_attestation(digest, event.object_id):
            Log.debug("Already attested, skipping replay", hash=digest, object_id=event.object_id)
            return None

        raw = self._object_store.fetch(event.object_id)
        metadata = json.loads(raw.decode("utf-8"))
        if not isinstance(metadata, dict):
            raise ValueError(f"Object {event.object_id} is not a notarization record")

        checks = run_checks(metadata, digest, self._checks)
        timestamp = self._clock()
        statement: dict[str, Any] = {
            "kind": ATTESTATION_KIND,
            "doc_hash": digest,
            "object_id": event.object_id,
            "token_id": event.token_id,
            "timestamp": timestamp,
            "fields": metadata.get("fields", {}),
            "checks": [asdict(check) for check in checks],
            "signer_public_key": self._signer.public_key_hex,
        }
        signature = self._signer.sign(statement)
        signed = {**statement, "signature": signature}
        attestation_object_id = self._object_store.publish(
            json.dumps(signed, indent=2, ensure_ascii=False).encode("utf-8")
        )

        entry = AttestationEntry(
            hash=digest,
            attestation_object_id=attestation_object_id,
            source_object_id=event.object_id,
            timestamp=timestamp,
            signer_public_key=self._signer.public_key_hex,
            signature=signature,
        )
        self._repository.add_attestation(entry)
        Log.info(
            "Document attested",
            hash=digest,
            attestation_object_id=attestation_object_id,
            checks=len(checks),
        )

        attested = AttestedEvent(
            hash=digest,
            attestation_object_id=attestation_object_id,
            token_id=event.token_id,
            timestamp=timestamp,
        )
        self._event_log.publish(attested.to_dict())
        self._broadcaster.broadcast(attested.to_dict(source="local"))
        return entry
