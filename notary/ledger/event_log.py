import json
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from notary.ledger.gateway import ErrorHandler, LedgerGateway, SubscriptionHandle, TopicMessage
from notary.ledger.timeouts import bounded_call
from notary.logging.logger import Log

EventHandler = Callable[[dict[str, Any], TopicMessage], None]


class EventLog:
    """Append-only JSON event log on a single consensus topic.

    Subscribers see events in the topic's total order. Delivery is
    at-least-once, so handlers must tolerate replays.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        *,
        topic_id: str = "",
        timeout_seconds: float = 60.0,
        memo: str = "Notary notarizations",
    ) -> None:
        self._gateway = gateway
        self._topic_id = topic_id.strip() or None
        self._timeout_seconds = timeout_seconds
        self._memo = memo
        self._lock = threading.Lock()

    @property
    def topic_id(self) -> str | None:
        return self._topic_id

    def ensure_topic(self) -> str:
        """Return the configured topic, creating it once if none is configured."""
        with self._lock:
            if self._topic_id:
                return self._topic_id
            self._topic_id = bounded_call(
                "topic create",
                self._timeout_seconds,
                lambda: self._gateway.create_topic(self._memo),
            )
            Log.info("Created event log topic", topic_id=self._topic_id)
            return self._topic_id

    def publish(self, event: dict[str, Any]) -> int:
        """Append ``event`` to the topic and return its sequence number."""
        topic_id = self.ensure_topic()
        message = json.dumps(event, separators=(",", ":")).encode("utf-8")
        sequence = bounded_call(
            "topic submit",
            self._timeout_seconds,
            lambda: self._gateway.submit_message(topic_id, message),
        )
        Log.debug(f"Published {event.get('type')} event", topic_id=topic_id, sequence=sequence)
        return sequence

    def subscribe(
        self,
        handler: EventHandler,
        on_error: ErrorHandler,
        *,
        from_beginning: bool = False,
        start_time: datetime | None = None,
    ) -> SubscriptionHandle:
        """Deliver every event from now (or the beginning, or ``start_time``) to ``handler``.

        Messages that are not JSON objects are logged and skipped.
        """
        topic_id = self.ensure_topic()
        if from_beginning:
            start = None
        else:
            start = start_time or datetime.now(timezone.utc)

        def _decode(message: TopicMessage) -> None:
            try:
                payload = json.loads(message.contents.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                Log.warning(
                    f"Skipping undecodable log message: {exc}",
                    sequence=message.sequence_number,
                )
                return
            if not isinstance(payload, dict):
                Log.warning("Skipping non-object log message", sequence=message.sequence_number)
                return
            handler(payload, message)

        return self._gateway.subscribe_topic(topic_id, start, _decode, on_error)

    def is_ready(self) -> bool:
        topic_id = self.ensure_topic()
        return self._gateway.topic_ready(topic_id)

    def wait_until_ready(
        self,
        attempts: int,
        interval_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> bool:
        """Probe the topic until subscriptions can be served.

        Returns:
            True once ready, False if every attempt failed.
        """
        for attempt in range(1, attempts + 1):
            if self.is_ready():
                return True
            Log.debug(f"Event log not ready (attempt {attempt}/{attempts})")
            if attempt < attempts:
                sleep(interval_seconds)
        return False
