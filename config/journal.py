# config/journal.py
from typing import Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from config.settings import Settings, settings as _settings
from core.lookup_catalog import dataset_table
from model.journal import DatasetDescriptor
from util.enums import ArrayPolicy, BlobBackend, JournalProfile
from util.constants import ExternalURIs


class JournalConfig(BaseModel):
    """
    Everything the journal needs, passed explicitly to the coordinator
    instead of reading process-wide settings.
    """

    model_config = ConfigDict(frozen=True)

    profile: JournalProfile = JournalProfile.BLOB
    timeout_seconds: float = 15.0
    max_concurrency: int = Field(default=8, ge=1)
    max_pending: int = Field(default=1000, ge=1)
    secret_fields: Tuple[str, ...] = (
        "token",
        "api_key",
        "apikey",
        "password",
        "secret",
        "authorization",
    )
    datasets: Dict[str, DatasetDescriptor] = Field(default_factory=dataset_table)

    blob_backend: BlobBackend = BlobBackend.GITHUB
    github_token: Optional[str] = None
    github_repo: Optional[str] = None
    github_api_url: str = ExternalURIs.GITHUB_API
    github_branch: str = "main"
    github_dir: str = "public"
    redis_url: Optional[str] = None

    log_sink_url: Optional[str] = None
    log_sink_token: Optional[str] = None
    kv_sink_url: Optional[str] = None
    kv_array_policy: ArrayPolicy = ArrayPolicy.FIRST

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None) -> "JournalConfig":
        s = s or _settings
        return cls(
            profile=s.JOURNAL_PROFILE,
            timeout_seconds=s.JOURNAL_TIMEOUT_SECONDS,
            max_concurrency=s.JOURNAL_MAX_CONCURRENCY,
            max_pending=s.JOURNAL_MAX_PENDING,
            secret_fields=tuple(
                f.strip() for f in s.JOURNAL_SECRET_FIELDS.split(",") if f.strip()
            ),
            blob_backend=s.BLOB_BACKEND,
            github_token=s.GITHUB_TOKEN,
            github_repo=s.GITHUB_REPO,
            github_api_url=s.GITHUB_API_URL,
            github_branch=s.GITHUB_BRANCH,
            github_dir=s.GITHUB_DIR,
            redis_url=s.REDIS_URL,
            log_sink_url=s.LOG_SINK_URL,
            log_sink_token=s.LOG_SINK_TOKEN,
            kv_sink_url=s.KV_SINK_URL,
            kv_array_policy=s.KV_ARRAY_POLICY,
        )
