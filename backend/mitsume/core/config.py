from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "mitsume"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Catalog / schema used when a query does not name one
    DEFAULT_CATALOG: str = "memory"
    DEFAULT_SCHEMA: str = "default"

    # Users holding this role may query every catalog
    ADMIN_ROLE_NAME: str = "admin"

    # Max options returned by a parameter options query
    PARAM_OPTIONS_LIMIT: int = 200

    # Role store
    SQLALCHEMY_DATABASE_URI: str = "sqlite://"


settings = Settings()  # type: ignore
