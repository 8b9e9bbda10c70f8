from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TopicMessage:
    """One message observed on a consensus topic."""

    sequence_number: int
    consensus_timestamp: datetime
    contents: bytes


MessageHandler = Callable[[TopicMessage], None]
ErrorHandler = Callable[[Exception], None]


class SubscriptionHandle(ABC):
    """A live topic subscription."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop delivering messages. Idempotent."""


class LedgerGateway(ABC):
    """Contract for the primitive operations of the external ledger.

    Each write is signed by the operator key and returns only once the ledger
    acknowledged it. Implementations raise LedgerError for rejected operations.
    """

    @abstractmethod
    def operator_public_key(self) -> str:
        """Hex encoding of the operator's public key."""

    @abstractmethod
    def operator_balance_tinybars(self) -> int: ...

    @abstractmethod
    def create_file(self, contents: bytes, memo: str) -> str:
        """Create a file owned by the operator key seeded with ``contents``."""

    @abstractmethod
    def append_file(self, file_id: str, contents: bytes) -> None: ...

    @abstractmethod
    def seal_file(self, file_id: str) -> None:
        """Remove every owning key so nobody can modify the file again."""

    @abstractmethod
    def read_file(self, file_id: str) -> bytes: ...

    @abstractmethod
    def create_unique_token(self, name: str, symbol: str, memo: str) -> str:
        """Create a non-fungible collection with a finite max supply of one."""

    @abstractmethod
    def mint_unique(self, token_id: str, metadata: bytes) -> int:
        """Mint one unit carrying ``metadata``; return its serial number."""

    @abstractmethod
    def create_topic(self, memo: str) -> str: ...

    @abstractmethod
    def submit_message(self, topic_id: str, message: bytes) -> int:
        """Append ``message`` to the topic; return its sequence number."""

    @abstractmethod
    def subscribe_topic(
        self,
        topic_id: str,
        start_time: datetime | None,
        on_message: MessageHandler,
        on_error: ErrorHandler,
    ) -> SubscriptionHandle:
        """Stream topic messages in consensus order from ``start_time``.

        ``start_time=None`` replays the topic from its first message.
        """

    @abstractmethod
    def topic_ready(self, topic_id: str) -> bool:
        """Whether the subscription service can already serve ``topic_id``."""
