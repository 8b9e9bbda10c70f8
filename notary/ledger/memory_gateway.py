"""In-process ledger for local development and tests.

Mirrors the rules of the real ledger that the notary relies on: sealed files
reject writes, unique-token collections cap their supply at one, and every
topic keeps a single total order delivered to subscribers on their own
dispatcher threads.
"""

import itertools
import queue
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from notary.ledger.exceptions import (
    LedgerError,
    ObjectSealedError,
    TokenSupplyExhaustedError,
)
from notary.ledger.gateway import (
    ErrorHandler,
    LedgerGateway,
    MessageHandler,
    SubscriptionHandle,
    TopicMessage,
)


@dataclass
class _File:
    contents: bytearray
    sealed: bool = False
    memo: str = ""


@dataclass
class _Token:
    name: str
    symbol: str
    max_supply: int = 1
    minted: list[bytes] = field(default_factory=list)


class _MemorySubscription(SubscriptionHandle):
    def __init__(self, on_message: MessageHandler, on_error: ErrorHandler) -> None:
        self._on_message = on_message
        self._on_error = on_error
        # None stops the dispatcher.
        self._queue: queue.Queue[TopicMessage | None] = queue.Queue()
        self._cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._dispatch, name="memory-topic-dispatch", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def deliver(self, message: TopicMessage) -> None:
        if not self._cancelled.is_set():
            self._queue.put(message)

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            self._cancelled.set()
            self._queue.put(None)

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set()

    def _dispatch(self) -> None:
        while True:
            item = self._queue.get()
            if item is None or self._cancelled.is_set():
                return
            try:
                self._on_message(item)
            except Exception as exc:  # noqa: BLE001
                self._on_error(exc)


class MemoryGateway(LedgerGateway):
    """LedgerGateway kept entirely in memory."""

    def __init__(self, operator_balance_tinybars: int = 10_000_000_000) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1001)
        self._public_key = secrets.token_hex(32)
        self.balance_tinybars = operator_balance_tinybars
        self.files: dict[str, _File] = {}
        self.tokens: dict[str, _Token] = {}
        self._topics: dict[str, list[TopicMessage]] = {}
        self._subscriptions: dict[str, list[_MemorySubscription]] = {}

    def _next_id(self) -> str:
        return f"0.0.{next(self._ids)}"

    def operator_public_key(self) -> str:
        return self._public_key

    def operator_balance_tinybars(self) -> int:
        return self.balance_tinybars

    def create_file(self, contents: bytes, memo: str) -> str:
        with self._lock:
            file_id = self._next_id()
            self.files[file_id] = _File(contents=bytearray(contents), memo=memo)
            return file_id

    def append_file(self, file_id: str, contents: bytes) -> None:
        with self._lock:
            stored = self._file(file_id)
            if stored.sealed:
                raise ObjectSealedError(f"File {file_id} is immutable")
            stored.contents.extend(contents)

    def seal_file(self, file_id: str) -> None:
        with self._lock:
            stored = self._file(file_id)
            if stored.sealed:
                raise ObjectSealedError(f"File {file_id} is immutable")
            stored.sealed = True

    def read_file(self, file_id: str) -> bytes:
        with self._lock:
            return bytes(self._file(file_id).contents)

    def _file(self, file_id: str) -> _File:
        stored = self.files.get(file_id)
        if stored is None:
            raise LedgerError(f"INVALID_FILE_ID: {file_id}")
        return stored

    def create_unique_token(self, name: str, symbol: str, memo: str) -> str:
        with self._lock:
            token_id = self._next_id()
            self.tokens[token_id] = _Token(name=name, symbol=symbol)
            return token_id

    def mint_unique(self, token_id: str, metadata: bytes) -> int:
        with self._lock:
            token = self.tokens.get(token_id)
            if token is None:
                raise LedgerError(f"INVALID_TOKEN_ID: {token_id}")
            if len(token.minted) >= token.max_supply:
                raise TokenSupplyExhaustedError(
                    f"TOKEN_MAX_SUPPLY_REACHED: {token_id}"
                )
            token.minted.append(metadata)
            return len(token.minted)

    def create_topic(self, memo: str) -> str:
        with self._lock:
            topic_id = self._next_id()
            self._topics[topic_id] = []
            self._subscriptions[topic_id] = []
            return topic_id

    def submit_message(self, topic_id: str, message: bytes) -> int:
        with self._lock:
            messages = self._topic(topic_id)
            record = TopicMessage(
                sequence_number=len(messages) + 1,
                consensus_timestamp=datetime.now(timezone.utc),
                contents=message,
            )
            messages.append(record)
            for subscription in self._subscriptions[topic_id]:
                subscription.deliver(record)
            return record.sequence_number

    def subscribe_topic(
        self,
        topic_id: str,
        start_time: datetime | None,
        on_message: MessageHandler,
        on_error: ErrorHandler,
    ) -> SubscriptionHandle:
        subscription = _MemorySubscription(on_message, on_error)
        with self._lock:
            for record in self._topic(topic_id):
                if start_time is None or record.consensus_timestamp >= start_time:
                    subscription.deliver(record)
            self._subscriptions[topic_id] = [
                active for active in self._subscriptions[topic_id] if active.active
            ]
            self._subscriptions[topic_id].append(subscription)
        subscription.start()
        return subscription

    def topic_ready(self, topic_id: str) -> bool:
        with self._lock:
            return topic_id in self._topics

    def topic_messages(self, topic_id: str) -> list[TopicMessage]:
        with self._lock:
            return list(self._topic(topic_id))

    def _topic(self, topic_id: str) -> list[TopicMessage]:
        messages = self._topics.get(topic_id)
        if messages is None:
            raise LedgerError(f"INVALID_TOPIC_ID: {topic_id}")
        return messages
