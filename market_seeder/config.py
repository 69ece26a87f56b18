from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.errors import ConfigurationError


class Settings(BaseSettings):
    """Seeder configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rpc_url: str = Field(
        alias="RPC_URL",
        description="JSON-RPC endpoint of the chain hosting the market contract.",
    )
    contract_address: str = Field(
        alias="CONTRACT_ADDRESS",
        description="Address of the prediction market contract.",
    )
    private_key: SecretStr = Field(
        alias="PRIVATE_KEY",
        description="Private key of the account that signs createMarket transactions.",
    )
    openai_api_key: SecretStr = Field(
        alias="OPENAI_API_KEY",
        description="API key for the OpenAI chat completions endpoint.",
    )

    price_api_url: str = Field(
        default="https://api.coingecko.com/api/v3/simple/price",
        alias="PRICE_API_URL",
        description="CoinGecko simple price endpoint.",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        alias="OPENAI_BASE_URL",
        description="Base URL for the OpenAI REST API.",
    )
    openai_model: str = Field(
        default="gpt-4o",
        alias="OPENAI_MODEL",
        description="Chat model used to propose new markets.",
    )
    openai_temperature: float = Field(
        default=0.7,
        alias="OPENAI_TEMPERATURE",
        description="Sampling temperature for market proposals.",
    )
    active_market_threshold: int = Field(
        default=5,
        alias="ACTIVE_MARKET_THRESHOLD",
        description="Skip the run when at least this many recent markets are unresolved.",
    )
    recent_market_window: int = Field(
        default=20,
        alias="RECENT_MARKET_WINDOW",
        description="Number of most recent markets inspected when counting active ones.",
    )
    proposal_count: int = Field(
        default=5,
        alias="PROPOSAL_COUNT",
        description="Number of markets requested from the model per run.",
    )
    proposal_horizon_hours: int = Field(
        default=8,
        alias="PROPOSAL_HORIZON_HOURS",
        description="Proposed markets must resolve within this many hours.",
    )
    request_timeout: float = Field(
        default=30.0,
        alias="REQUEST_TIMEOUT_SEC",
        description="Timeout in seconds for price and completion HTTP requests.",
    )
    rpc_timeout: float = Field(
        default=30.0,
        alias="RPC_TIMEOUT_SEC",
        description="Timeout in seconds for JSON-RPC requests.",
    )
    receipt_timeout: float = Field(
        default=120.0,
        alias="TX_RECEIPT_TIMEOUT_SEC",
        description="Seconds to wait for a createMarket transaction to be mined.",
    )
    seed_interval_sec: int = Field(
        default=3600,
        alias="SEED_INTERVAL_SEC",
        description="Seconds between runs when started with --loop.",
    )

    @field_validator("rpc_url", "contract_address", "private_key", "openai_api_key", mode="before")
    @classmethod
    def _reject_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value


def load_settings() -> Settings:
    """Build settings from the environment, failing fast on missing values."""

    try:
        return Settings()
    except ValidationError as exc:
        names = sorted(
            {str(error["loc"][0]) for error in exc.errors() if error.get("loc")}
        )
        raise ConfigurationError(
            f"Invalid or missing configuration: {', '.join(names)}"
        ) from exc
