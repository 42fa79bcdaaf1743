"""
Application configuration using Pydantic Settings.

All environment variables are accessed through this config object.
Never use os.getenv() directly in business logic.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generation providers
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key (DALL-E 3)")
    OPENAI_API_URL: str = Field(
        default="https://api.openai.com",
        description="OpenAI API base URL",
    )
    STABILITY_API_KEY: str = Field(default="", description="Stability AI API key")
    STABILITY_API_URL: str = Field(
        default="https://api.stability.ai",
        description="Stability AI API base URL",
    )
    BYTEZ_API_KEY: str = Field(default="", description="Bytez API key")
    BYTEZ_API_URL: str = Field(
        default="https://api.bytez.com",
        description="Bytez API base URL",
    )
    ENABLE_DEMO_PROVIDER: bool = Field(
        default=False,
        description="Enable the local demo provider (demo-model)",
    )
    DEMO_LATENCY_SECONDS: float = Field(
        default=0.0,
        description="Artificial delay for demo generations",
    )

    # Timeouts
    GENERATION_TIMEOUT: float = Field(
        default=300.0,
        description="Maximum time for a provider generation call in seconds",
    )
    DOWNLOAD_TIMEOUT: float = Field(
        default=60.0,
        description="Timeout for fetching generated content in seconds",
    )
    CONTENT_PIN_TIMEOUT: float = Field(
        default=60.0,
        description="Timeout for pinning content bytes in seconds",
    )
    METADATA_PIN_TIMEOUT: float = Field(
        default=5.0,
        description="Timeout for pinning the proof package in seconds",
    )
    MODEL_LIST_TIMEOUT: float = Field(
        default=3.0,
        description="Timeout for provider model catalog calls in seconds",
    )
    PROGRESS_INTERVAL: float = Field(
        default=5.0,
        description="Seconds between progress events during generation",
    )

    # IPFS
    IPFS_BACKEND: str = Field(
        default="auto",
        description="Content store: pinata, local, or auto (pinata if PINATA_JWT set)",
    )
    PINATA_JWT: str = Field(default="", description="Pinata API JWT")
    PINATA_API_URL: str = Field(
        default="https://api.pinata.cloud",
        description="Pinata API base URL",
    )
    IPFS_GATEWAY_URL: str = Field(
        default="https://gateway.pinata.cloud",
        description="Public IPFS gateway used to build content URLs",
    )

    # Database
    DATABASE_URL: str = Field(
        default="",
        description="SQLAlchemy async URL; empty runs the record store in degraded mode",
    )

    # Authentication
    JWT_SECRET: str = Field(default="dev-secret", description="JWT signing secret")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    ALLOW_ANONYMOUS_REGISTRATION: bool = Field(
        default=True,
        description="Allow POST /api/artworks without a creator identity",
    )

    # Registry
    RPC_URL: str = Field(default="", description="EVM JSON-RPC endpoint")
    PROOF_OF_ART_ADDRESS: str = Field(
        default="",
        description="Deployed ProofOfArt contract address",
    )
    REGISTRAR_PRIVATE_KEY: str = Field(
        default="",
        description="Private key used for server-side registration",
    )
    REGISTRY_TX_TIMEOUT: float = Field(
        default=120.0,
        description="Seconds to wait for a registration receipt",
    )

    # Proof packages
    PROMPT_ENCRYPTION_KEY: str = Field(
        default="",
        description="64 hex chars; enables encrypted prompts in proof packages",
    )

    # Storage Configuration
    STORAGE_PATH: str = Field(
        default="/tmp/proof-of-art",
        description="Path for staged content and the local IPFS store",
    )
    STAGING_TTL_HOURS: int = Field(
        default=24,
        description="Staged content time-to-live in hours",
    )
    CLEANUP_INTERVAL_HOURS: int = Field(
        default=1,
        description="Cleanup interval in hours (0 disables the scheduler)",
    )

    # Application Configuration
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )
    MAX_PROMPT_LENGTH: int = Field(
        default=1000,
        description="Maximum prompt length after trimming",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")


# Global settings instance
settings = Settings()
