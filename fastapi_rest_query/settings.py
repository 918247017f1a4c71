# fastapi_rest_query/settings.py

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REST_QUERY_",
        case_sensitive=True,
        extra="ignore",
    )

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 1000
    MAX_OFFSET: int = 10000
    MAX_SEARCH_KEYWORDS: int = 5

    NULL_SENTINEL: str = ".null."
    SOFT_DELETE_ACTIVE_VALUE: str = "no"

    TOTAL_HEADER: str = "X-Content-Record-Total"
    IGNORE_TOTAL_VALUE: str = "yes"


@lru_cache
def get_settings() -> Settings:
    return Settings()
