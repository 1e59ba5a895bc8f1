from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    SEARCH_ENDPOINT: str = "https://your-service.search.windows.net"
    SEARCH_API_KEY: str = "your_search_key"
    SEARCH_API_VERSION: str = "2023-11-01"
    STORAGE_CONNECTION_STRING: str = "UseDevelopmentStorage=true"
    POSTCODES_URL: str = "https://api.postcodes.io"
    PRICE_PAID_DATA_URL: str = (
        "http://prod.publicdata.landregistry.gov.uk.s3-website-eu-west-1.amazonaws.com"
        "/pp-monthly-update-new-version.csv"
    )
    IMPORT_BATCH_SIZE: int = 1000
    RESET_INDEX_ON_STARTUP: bool = False
    REDIS_URL: str = ""
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("SEARCH_ENDPOINT", "POSTCODES_URL")
    def strip_trailing_slash(cls, v):
        """Base URLs are joined with absolute paths, so drop any trailing slash."""
        return v.rstrip("/") if v else v

    @field_validator("IMPORT_BATCH_SIZE")
    def positive_batch_size(cls, v):
        if v < 1:
            raise ValueError("IMPORT_BATCH_SIZE must be at least 1")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
