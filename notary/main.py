import uvicorn

from notary.api.server import create_app
from notary.config.settings import Settings
from notary.database.connection import close_pool, init_pool
from notary.database.schema import ensure_schema
from notary.logging.logger import Log
from notary.service import build_service


def main() -> None:
    """Entry point: initialize store -> build service -> start agent -> serve HTTP."""
    settings = Settings()
    Log.configure(settings.log_level)
    uses_postgres = settings.store_backend.lower() == "postgres"
    if uses_postgres:
        init_pool(settings)
        ensure_schema()

    try:
        service = build_service(settings)
        service.start()
        try:
            app = create_app(service, settings.max_file_bytes)
            uvicorn.run(app, host=settings.host, port=settings.port)
        finally:
            service.stop()
    finally:
        if uses_postgres:
            close_pool()


if __name__ == "__main__":
    main()
