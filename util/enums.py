# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class JournalProfile(str, Enum):
    """Which sinks a deployment writes journal entries to."""

    BLOB = "blob"
    LOG = "log"
    LOG_KV = "log_kv"
    OFF = "off"


class BlobBackend(str, Enum):
    GITHUB = "github"
    REDIS = "redis"


class ArrayPolicy(str, Enum):
    # How the key-value sink flattens an array result.
    FIRST = "first"
    EACH = "each"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    UPSTREAM_FAILED = ErrorInfo("Upstream lookup failed", status.HTTP_502_BAD_GATEWAY)
    UPSTREAM_UNAVAILABLE = ErrorInfo(
        "Upstream lookup unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
    )
