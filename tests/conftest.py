import io
from collections.abc import Callable, Generator

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from notary.attestation.signer import Signer
from notary.config.settings import Settings
from notary.database.repositories.memory_repository import MemoryNotaryRepository
from notary.ledger.memory_gateway import MemoryGateway
from notary.payment.sources import MemoryTransactionSource
from notary.service import NotaryService, build_service
from notary.summarization.base import BaseSummarizer

SIGNING_KEY_HEX = "9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"
PAYER = "0x" + "aa" * 20
TREASURY = "0x" + "bb" * 20
PRICE = 1_000_000


class FixedSummarizer(BaseSummarizer):
    def __init__(self, summary: str = "- a short summary") -> None:
        self.summary = summary
        self.calls = 0

    def summarize(self, text: str) -> str:
        self.calls += 1
        return self.summary


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Invoice 2024-03-15 total 1,250.00")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def payer_address() -> str:
    return PAYER


@pytest.fixture()
def treasury_address() -> str:
    return TREASURY


@pytest.fixture()
def price() -> int:
    return PRICE


@pytest.fixture()
def signing_key_hex() -> str:
    return SIGNING_KEY_HEX


@pytest.fixture()
def signer() -> Signer:
    return Signer.from_hex(SIGNING_KEY_HEX)


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        store_backend="memory",
        ledger_backend="memory",
        summarization_provider="none",
        treasury_address=TREASURY,
        price_wei=PRICE,
        payment_poll_attempts=2,
        payment_poll_interval_seconds=0.0,
        attestation_signing_key=SIGNING_KEY_HEX,
        attestation_warmup_seconds=0.01,
        attestation_restart_backoff_seconds=0.05,
        service_timeout_seconds=5.0,
    )


@pytest.fixture()
def gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture()
def repository() -> MemoryNotaryRepository:
    return MemoryNotaryRepository()


@pytest.fixture()
def transactions() -> MemoryTransactionSource:
    return MemoryTransactionSource()


@pytest.fixture()
def summarizer() -> FixedSummarizer:
    return FixedSummarizer()


@pytest.fixture()
def record_payment(transactions: MemoryTransactionSource) -> Callable[..., str]:
    """Record a settled payment from PAYER to TREASURY and return its reference."""
    counter = iter(range(1, 10_000))

    def _record(amount: int = PRICE, sender: str = PAYER, recipient: str = TREASURY) -> str:
        ref = f"0x{next(counter):064x}"
        transactions.record(ref, sender=sender, recipient=recipient, value=amount)
        return ref

    return _record


@pytest.fixture()
def service(
    test_settings: Settings,
    gateway: MemoryGateway,
    repository: MemoryNotaryRepository,
    transactions: MemoryTransactionSource,
    summarizer: FixedSummarizer,
    signer: Signer,
) -> Generator[NotaryService, None, None]:
    svc = build_service(
        test_settings,
        gateway=gateway,
        repository=repository,
        transaction_source=transactions,
        summarizer=summarizer,
        signer=signer,
    )
    try:
        yield svc
    finally:
        svc.stop()
