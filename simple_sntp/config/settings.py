from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Command line defaults with environment variable support.

    The library functions take every parameter per call; only the CLI reads
    these values.
    """

    # Server queried when none is given on the command line
    SERVER: str = "pool.ntp.org"

    # Socket timeout for send and receive, in seconds
    TIMEOUT: float = Field(default=5.0, gt=0)

    # Reject responses that are not server-mode NTP v1-v4
    STRICT: bool = False

    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="SNTP_",
        env_file=".env",
        extra="ignore",
    )


# Global settings instance
settings = Settings()
