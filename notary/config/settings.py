from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    max_file_mb: int = 12

    store_backend: str = "postgres"
    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "notary"
    db_username: str = "notary"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    ledger_backend: str = "hedera"
    hedera_network: str = "testnet"
    hedera_operator_id: str = ""
    hedera_operator_key: str = ""
    hedera_topic_id: str = ""
    hedera_mirror_url: str = "https://testnet.mirrornode.hedera.com"
    operator_min_balance_tinybars: int = 3_000_000_000
    object_chunk_bytes: int = 4096
    service_timeout_seconds: float = 60.0

    treasury_address: str = ""
    price_wei: int = 0
    payment_rpc_url: str = "https://testnet.hashio.io/api"
    payment_poll_attempts: int = 12
    payment_poll_interval_seconds: float = 2.5

    pdf_engine: str = "pdfplumber"
    max_text_chars: int = 20000
    text_excerpt_chars: int = 5000

    summarization_provider: str = "openai"
    summarization_api_key: str = ""
    summarization_model_name: str = "gpt-4o-mini"
    summarization_base_url: str = ""
    summarization_timeout_seconds: int = 30
    summary_input_chars: int = 6000

    attestation_signing_key: str = ""
    attestation_warmup_seconds: float = 3.0
    attestation_ready_attempts: int = 10
    attestation_restart_backoff_seconds: float = 5.0

    pending_stale_seconds: float = 3600.0

    @property
    def max_file_bytes(self) -> int:
        return self.max_file_mb * 1024 * 1024
