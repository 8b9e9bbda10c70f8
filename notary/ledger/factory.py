from notary.config.settings import Settings
from notary.ledger.gateway import LedgerGateway
from notary.ledger.memory_gateway import MemoryGateway


class LedgerGatewayFactory:
    """Creates the configured ledger gateway."""

    BACKENDS = ("hedera", "memory")

    @classmethod
    def create(cls, settings: Settings) -> LedgerGateway:
        backend = settings.ledger_backend.lower()
        if backend == "memory":
            return MemoryGateway()
        if backend == "hedera":
            from notary.ledger.hedera_gateway import HederaGateway

            return HederaGateway.from_settings(settings)
        raise ValueError(
            f"Unknown ledger backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
