from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "Carbon Credit Ledger"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"
    PING_MESSAGE: str = "ping"

    # Content store backend: "pinata" for IPFS pinning, "memory" for local dev
    CONTENT_STORE: str = "pinata"

    # Pinata: JWT wins over key/secret; with neither, writes degrade to memory
    PINATA_JWT: str | None = None
    PINATA_API_KEY: str | None = None
    PINATA_API_SECRET: str | None = None
    PINATA_API_URL: str = "https://api.pinata.cloud"

    # Mirror gateways raced on every read (first success wins)
    IPFS_GATEWAYS: list[str] = [
        "https://gateway.pinata.cloud/ipfs/",
        "https://ipfs.io/ipfs/",
        "https://cloudflare-ipfs.com/ipfs/",
        "https://dweb.link/ipfs/",
    ]
    GATEWAY_TIMEOUT_SECONDS: float = 8.0
    READ_TOTAL_TIMEOUT_SECONDS: float = 20.0
    SEARCH_TIMEOUT_SECONDS: float = 10.0
    WRITE_MAX_ATTEMPTS: int = 3
    WRITE_BACKOFF_BASE_SECONDS: float = 0.5

    # Ledger
    DEFAULT_SECONDARY_BALANCE: int = 100
    MIN_SIGNATURE_LENGTH: int = 10

    # Marketplace
    HYDRATE_ON_STARTUP: bool = True


settings = Settings()
