"""LedgerGateway backed by the Hedera network through the Hiero Python SDK.

Files, non-fungible tokens and consensus topics map one-to-one onto the
gateway contract. Topic readiness is probed against the mirror node REST API,
which lags consensus by a few seconds after a topic is created.
"""

from datetime import datetime, timezone
from typing import Any

import httpx
from hiero_sdk_python import (
    AccountId,
    Client,
    CryptoGetAccountBalanceQuery,
    FileAppendTransaction,
    FileContentsQuery,
    FileCreateTransaction,
    FileId,
    FileUpdateTransaction,
    Network,
    PrivateKey,
    ResponseCode,
    SupplyType,
    TokenCreateTransaction,
    TokenId,
    TokenMintTransaction,
    TokenType,
    TopicCreateTransaction,
    TopicId,
    TopicMessageQuery,
    TopicMessageSubmitTransaction,
)

from notary.config.settings import Settings
from notary.ledger.exceptions import LedgerError
from notary.ledger.gateway import (
    ErrorHandler,
    LedgerGateway,
    MessageHandler,
    SubscriptionHandle,
    TopicMessage,
)
from notary.logging.logger import Log

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class _HederaSubscription(SubscriptionHandle):
    def __init__(self, handle: Any) -> None:
        self._handle = handle
        self._cancelled = False

    def cancel(self) -> None:
        if not self._cancelled:
            self._cancelled = True
            self._handle.cancel()


class HederaGateway(LedgerGateway):
    """Signs every transaction with the operator key and waits for its receipt."""

    def __init__(
        self,
        *,
        network: str,
        operator_id: str,
        operator_key: str,
        mirror_url: str,
        http_timeout_seconds: float = 10.0,
    ) -> None:
        if not operator_id or not operator_key:
            raise ValueError("hedera_operator_id and hedera_operator_key are required")
        self._operator_id = AccountId.from_string(operator_id)
        self._operator_key = PrivateKey.from_string(operator_key)
        self._client = Client(Network(network=network))
        self._client.set_operator(self._operator_id, self._operator_key)
        self._mirror_url = mirror_url.rstrip("/")
        self._http_timeout_seconds = http_timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "HederaGateway":
        return cls(
            network=settings.hedera_network,
            operator_id=settings.hedera_operator_id,
            operator_key=settings.hedera_operator_key,
            mirror_url=settings.hedera_mirror_url,
        )

    def _execute(self, transaction: Any, operation: str) -> Any:
        receipt = (
            transaction.freeze_with(self._client)
            .sign(self._operator_key)
            .execute(self._client)
        )
        if receipt.status != ResponseCode.SUCCESS:
            status = ResponseCode(receipt.status).name
            raise LedgerError(f"{operation} rejected by ledger: {status}")
        return receipt

    def operator_public_key(self) -> str:
        return self._operator_key.public_key().to_string_raw()

    def operator_balance_tinybars(self) -> int:
        balance = (
            CryptoGetAccountBalanceQuery()
            .set_account_id(self._operator_id)
            .execute(self._client)
        )
        return int(balance.hbars.to_tinybars())

    def create_file(self, contents: bytes, memo: str) -> str:
        transaction = (
            FileCreateTransaction()
            .set_keys([self._operator_key.public_key()])
            .set_contents(contents)
            .set_file_memo(memo)
        )
        receipt = self._execute(transaction, "file create")
        return str(receipt.file_id)

    def append_file(self, file_id: str, contents: bytes) -> None:
        transaction = (
            FileAppendTransaction()
            .set_file_id(FileId.from_string(file_id))
            .set_contents(contents)
        )
        self._execute(transaction, "file append")

    def seal_file(self, file_id: str) -> None:
        transaction = (
            FileUpdateTransaction()
            .set_file_id(FileId.from_string(file_id))
            .set_keys([])
        )
        self._execute(transaction, "file seal")

    def read_file(self, file_id: str) -> bytes:
        contents = (
            FileContentsQuery()
            .set_file_id(FileId.from_string(file_id))
            .execute(self._client)
        )
        return bytes(contents)

    def create_unique_token(self, name: str, symbol: str, memo: str) -> str:
        transaction = (
            TokenCreateTransaction()
            .set_token_name(name)
            .set_token_symbol(symbol)
            .set_token_memo(memo)
            .set_decimals(0)
            .set_initial_supply(0)
            .set_token_type(TokenType.NON_FUNGIBLE_UNIQUE)
            .set_supply_type(SupplyType.FINITE)
            .set_max_supply(1)
            .set_treasury_account_id(self._operator_id)
            .set_supply_key(self._operator_key.public_key())
        )
        receipt = self._execute(transaction, "token create")
        return str(receipt.token_id)

    def mint_unique(self, token_id: str, metadata: bytes) -> int:
        transaction = (
            TokenMintTransaction()
            .set_token_id(TokenId.from_string(token_id))
            .set_metadata([metadata])
        )
        receipt = self._execute(transaction, "token mint")
        serials = list(receipt.serial_numbers or [])
        if not serials:
            raise LedgerError(f"token mint for {token_id} returned no serial number")
        return int(serials[0])

    def create_topic(self, memo: str) -> str:
        transaction = TopicCreateTransaction().set_memo(memo)
        receipt = self._execute(transaction, "topic create")
        return str(receipt.topic_id)

    def submit_message(self, topic_id: str, message: bytes) -> int:
        transaction = (
            TopicMessageSubmitTransaction()
            .set_topic_id(TopicId.from_string(topic_id))
            .set_message(message)
        )
        receipt = self._execute(transaction, "topic submit")
        return int(receipt.topic_sequence_number)

    def subscribe_topic(
        self,
        topic_id: str,
        start_time: datetime | None,
        on_message: MessageHandler,
        on_error: ErrorHandler,
    ) -> SubscriptionHandle:
        query = TopicMessageQuery(
            topic_id=topic_id,
            start_time=start_time or _EPOCH,
            chunking_enabled=True,
        )

        def _deliver(message: Any) -> None:
            on_message(
                TopicMessage(
                    sequence_number=int(message.sequence_number),
                    consensus_timestamp=message.consensus_timestamp,
                    contents=bytes(message.contents),
                )
            )

        handle = query.subscribe(self._client, on_message=_deliver, on_error=on_error)
        return _HederaSubscription(handle)

    def topic_ready(self, topic_id: str) -> bool:
        url = f"{self._mirror_url}/api/v1/topics/{topic_id}"
        try:
            response = httpx.get(url, timeout=self._http_timeout_seconds)
        except httpx.HTTPError as exc:
            Log.debug(f"Mirror node probe failed: {exc}", topic_id=topic_id)
            return False
        return response.status_code == 200
