from notary.config.settings import Settings
from notary.database.repositories.base import NotaryRepository
from notary.database.repositories.memory_repository import MemoryNotaryRepository
from notary.database.repositories.postgres_repository import PostgresNotaryRepository


class RepositoryFactory:
    """Creates the configured store. The Postgres pool must already be initialized."""

    BACKENDS = ("postgres", "memory")

    @classmethod
    def create(cls, settings: Settings) -> NotaryRepository:
        backend = settings.store_backend.lower()
        if backend == "postgres":
            return PostgresNotaryRepository()
        if backend == "memory":
            return MemoryNotaryRepository()
        raise ValueError(
            f"Unknown store backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
