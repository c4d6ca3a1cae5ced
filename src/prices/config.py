"""Service configuration, read from the environment (and an optional .env file)."""

from functools import lru_cache
from urllib.parse import quote

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_user: str = Field("validator", alias="DB_USER")
    db_password: str = Field("val1dat0r", alias="DB_PASSWORD")
    db_name: str = Field("project-sem-1", alias="DB_NAME")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_pool_size: int = Field(4, alias="DB_POOL_SIZE")
    # Full URL override, e.g. sqlite:///prices.db for local runs
    database_url: str | None = Field(None, alias="DATABASE_URL")

    # HTTP server
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8080, alias="PORT")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{quote(self.db_user, safe='')}:{quote(self.db_password, safe='')}"
            f"@{self.db_host}:{self.db_port}/{quote(self.db_name, safe='')}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached Settings instance, so the environment is parsed once."""
    return Settings()


__all__ = ["Settings", "get_settings"]
