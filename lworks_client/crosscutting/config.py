"""
Name: Library Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Read LWORKS_* environment variables (tokens, network, environment)
  - Provide defaults for retry, timeout, logging and reassembly tuning

Collaborators:
  - crosscutting/client_config.py: resolves a ClientConfig from these values
  - infrastructure/services/mirror_client.py: timeouts and retry limits
  - crosscutting/logger.py: log level and format

Constraints:
  - No business logic, pure configuration
  - Never mutated at runtime; callers pass explicit ClientConfig values

Notes:
  - Singleton via lru_cache; tests call get_settings.cache_clear()
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LIBRARY_VERSION = "2.8.0"


class Settings(BaseSettings):
    """
    Library settings loaded from environment variables (prefix ``LWORKS_``).

    Attributes:
        token: Fallback access token for any network (LWORKS_TOKEN)
        testnet_token: Access token used for testnet (LWORKS_TESTNET_TOKEN)
        mainnet_token: Access token used for mainnet (LWORKS_MAINNET_TOKEN)
        network: Default network when none is passed (mainnet/testnet)
        environment: Default environment (dev/stage/prod/public)
        mirror_environment: Environment override for mirror calls only
        disable_tracking: Disable anonymous usage telemetry
        log_level: Logger level (default: WARNING)
        log_json: Emit JSON log lines (default: True)
        log_stderr: Attach a stderr handler to the library logger (default: False)
        http_timeout_seconds: Per-request timeout (default: 30)
        retry_max_attempts: Total attempts per call (default: 5)
        retry_base_delay_seconds: Initial backoff (default: 0.5)
        retry_max_delay_seconds: Backoff ceiling (default: 10)
        reassembly_slop_factor: Interleaving tolerance multiplier (default: 3)
    """

    # Credentials
    token: str = ""
    testnet_token: str = ""
    mainnet_token: str = ""

    # Network / environment defaults
    network: str = ""
    environment: str = ""
    mirror_environment: str = ""

    # Telemetry
    disable_tracking: bool = False

    # Logging
    log_level: str = "WARNING"
    log_json: bool = True
    log_stderr: bool = False

    # HTTP
    http_timeout_seconds: float = 30.0

    # Retry/Resilience
    retry_max_attempts: int = 5
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 10.0

    # Chunk reassembly
    reassembly_slop_factor: int = 3

    @field_validator("retry_max_attempts")
    @classmethod
    def retry_max_attempts_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("retry_max_attempts must be greater than 0")
        return v

    @field_validator("http_timeout_seconds")
    @classmethod
    def http_timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be greater than 0")
        return v

    @field_validator("reassembly_slop_factor")
    @classmethod
    def slop_factor_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("reassembly_slop_factor must be >= 0")
        return v

    @field_validator("network", "environment", "mirror_environment")
    @classmethod
    def normalize_names(cls, v: str) -> str:
        return (v or "").strip().lower()

    model_config = SettingsConfigDict(
        env_prefix="LWORKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
