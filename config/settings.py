# config/settings.py
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import ArrayPolicy, BlobBackend, Environment, JournalProfile
from util.constants import ExternalURIs
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    REDIS_URL: Optional[str] = Field(default=None, validation_alias="REDIS_URL")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(default="*", validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(default=60, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Upstream lookup API
    UPSTREAM_BASE_URL: str = Field(
        default="https://leder-data-api.ngrok.dev/v1.7",
        validation_alias="UPSTREAM_BASE_URL",
    )
    UPSTREAM_TOKEN: Optional[str] = Field(default=None, validation_alias="UPSTREAM_TOKEN")
    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=30.0, validation_alias="UPSTREAM_TIMEOUT_SECONDS"
    )

    # Journal
    JOURNAL_PROFILE: JournalProfile = Field(
        default=JournalProfile.BLOB, validation_alias="JOURNAL_PROFILE"
    )
    JOURNAL_TIMEOUT_SECONDS: float = Field(
        default=15.0, validation_alias="JOURNAL_TIMEOUT_SECONDS"
    )
    JOURNAL_MAX_CONCURRENCY: int = Field(
        default=8, validation_alias="JOURNAL_MAX_CONCURRENCY"
    )
    JOURNAL_MAX_PENDING: int = Field(default=1000, validation_alias="JOURNAL_MAX_PENDING")
    JOURNAL_SECRET_FIELDS: str = Field(
        default="token,api_key,apikey,password,secret,authorization",
        validation_alias="JOURNAL_SECRET_FIELDS",
    )

    # Blob journal backend
    BLOB_BACKEND: BlobBackend = Field(
        default=BlobBackend.GITHUB, validation_alias="BLOB_BACKEND"
    )
    GITHUB_TOKEN: Optional[str] = Field(default=None, validation_alias="GITHUB_TOKEN")
    # "owner/repository"
    GITHUB_REPO: Optional[str] = Field(default=None, validation_alias="GITHUB_REPO")
    GITHUB_API_URL: str = Field(
        default=ExternalURIs.GITHUB_API, validation_alias="GITHUB_API_URL"
    )
    GITHUB_BRANCH: str = Field(default="main", validation_alias="GITHUB_BRANCH")
    GITHUB_DIR: str = Field(default="public", validation_alias="GITHUB_DIR")

    # Log / key-value journal endpoints
    LOG_SINK_URL: Optional[str] = Field(default=None, validation_alias="LOG_SINK_URL")
    LOG_SINK_TOKEN: Optional[str] = Field(default=None, validation_alias="LOG_SINK_TOKEN")
    KV_SINK_URL: Optional[str] = Field(default=None, validation_alias="KV_SINK_URL")
    KV_ARRAY_POLICY: ArrayPolicy = Field(
        default=ArrayPolicy.FIRST, validation_alias="KV_ARRAY_POLICY"
    )

    # Logging knobs
    LOGGER_NAME: str = "consulta-gateway"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
