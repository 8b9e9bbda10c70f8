import json

from notary.ledger.gateway import LedgerGateway
from notary.ledger.timeouts import bounded_call
from notary.logging.logger import Log


def object_metadata(object_id: str) -> bytes:
    """Token metadata binding a proof token to a published object."""
    return json.dumps({"object_id": object_id}, separators=(",", ":")).encode("utf-8")


class ProofTokenIssuer:
    """Mints one-of-one proof tokens.

    Each token lives in its own collection whose max supply is one, so the
    ledger itself rejects any second mint.
    """

    TOKEN_NAME = "Notary Proof"
    TOKEN_SYMBOL = "NTRY1"

    def __init__(self, gateway: LedgerGateway, *, timeout_seconds: float = 60.0) -> None:
        self._gateway = gateway
        self._timeout_seconds = timeout_seconds

    def mint(self, metadata: bytes) -> str:
        """Create a fresh collection, mint its single unit, return the token id."""
        token_id = bounded_call(
            "token create",
            self._timeout_seconds,
            lambda: self._gateway.create_unique_token(
                self.TOKEN_NAME, self.TOKEN_SYMBOL, "notary proof of record"
            ),
        )
        serial = bounded_call(
            "token mint",
            self._timeout_seconds,
            lambda: self._gateway.mint_unique(token_id, metadata),
        )
        Log.info("Proof token minted", token_id=token_id, serial=serial)
        return token_id
