"""HTTP surface of the notary.

Endpoints:
- GET  /config              -> payment recipient, price and log topic
- GET  /api/check/{hash}    -> whether a content hash is notarized
- POST /api/notarize        -> notarize an uploaded document (multipart)
- POST /api/verify          -> look up an uploaded document (multipart)
- GET  /events              -> live feed as server-sent events

Usage:
    python -m notary.main
"""

import asyncio
import json
from collections.abc import AsyncIterator
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from notary.logging.logger import Log
from notary.notarization.exceptions import (
    ConflictError,
    InsufficientOperatorFundsError,
    InvalidInputError,
    NotarizationError,
    PaymentInvalidError,
    PaymentReusedError,
    ServiceError,
    ServiceTimeoutError,
)
from notary.service import NotaryService

# Most specific first; ServiceTimeoutError subclasses ServiceError.
STATUS_CODES: tuple[tuple[type[NotarizationError], int], ...] = (
    (InvalidInputError, 400),
    (ConflictError, 409),
    (PaymentReusedError, 409),
    (PaymentInvalidError, 402),
    (InsufficientOperatorFundsError, 503),
    (ServiceTimeoutError, 504),
    (ServiceError, 502),
)

FEED_KEEPALIVE_SECONDS = 15.0
FEED_POLL_SECONDS = 0.25


def status_for(exc: NotarizationError) -> int:
    for exc_type, status in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status
    return 500


def _read_upload(doc: UploadFile | None, limit_bytes: int) -> tuple[bytes, str]:
    if doc is None:
        raise InvalidInputError("No file")
    data = doc.file.read(limit_bytes + 1)
    if not data:
        raise InvalidInputError("No file")
    if len(data) > limit_bytes:
        raise InvalidInputError(f"File exceeds the {limit_bytes} byte upload limit")
    return data, doc.filename or "document"


def create_app(service: NotaryService, max_file_bytes: int) -> FastAPI:
    app = FastAPI(
        title="Notary API",
        version="0.1.0",
        description="Document notarization with proof tokens and signed attestations",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotarizationError)
    async def _notarization_error(request: Request, exc: NotarizationError) -> JSONResponse:
        status = status_for(exc)
        log = Log.error if status >= 500 else Log.warning
        log(f"{request.url.path} failed: {exc}", code=exc.code)
        return JSONResponse(
            status_code=status,
            content={"success": False, "error": str(exc), "code": exc.code},
        )

    @app.get("/config")
    def get_config() -> dict[str, Any]:
        return asdict(service.get_config())

    @app.get("/api/check/{hash_value}")
    def check(hash_value: str) -> dict[str, Any]:
        return {"exists": service.check(hash_value)}

    @app.post("/api/notarize")
    def notarize(
        doc: UploadFile | None = File(None),
        walletAddress: str = Form(""),  # noqa: N803
        txHash: str = Form(""),  # noqa: N803
    ) -> dict[str, Any]:
        data, filename = _read_upload(doc, max_file_bytes)
        result = service.notarize(data, filename, walletAddress, txHash or None)
        return {"success": True, **asdict(result)}

    @app.post("/api/verify")
    def verify(doc: UploadFile | None = File(None)) -> dict[str, Any]:
        data, _filename = _read_upload(doc, max_file_bytes)
        result = service.verify(data)
        body: dict[str, Any] = {"success": True, "matched": result.matched, "hash": result.hash}
        if result.record is not None:
            body.update(asdict(result.record))
            body["attestations"] = [asdict(entry) for entry in result.attestations]
        return body

    @app.get("/events")
    async def events() -> StreamingResponse:
        listener = service.open_feed()

        # Runs on the event loop and never blocks, so open feeds hold no
        # worker threads from the pool the sync routes run in.
        async def _stream() -> AsyncIterator[str]:
            idle = 0.0
            try:
                while not listener.closed:
                    message = listener.poll()
                    if message is not None:
                        idle = 0.0
                        yield f"data: {json.dumps(message)}\n\n"
                        continue
                    if idle >= FEED_KEEPALIVE_SECONDS:
                        idle = 0.0
                        yield ": keep-alive\n\n"
                    await asyncio.sleep(FEED_POLL_SECONDS)
                    idle += FEED_POLL_SECONDS
            finally:
                service.close_feed(listener)

        return StreamingResponse(
            _stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return app
