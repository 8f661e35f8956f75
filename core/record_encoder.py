# core/record_encoder.py
import copy
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional
from model.journal import JournalEntry

DEFAULT_SECRET_FIELDS = frozenset(
    {"token", "api_key", "apikey", "password", "secret", "authorization"}
)


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """
    UTC ISO-8601 with millisecond precision and a trailing "Z"
    (e.g. 2024-05-01T12:00:00.123Z).
    """
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def encode_entry(
    route: str,
    parameters: Mapping[str, Any],
    result: Any,
    *,
    secret_fields: Iterable[str] = DEFAULT_SECRET_FIELDS,
    now: Optional[datetime] = None,
) -> JournalEntry:
    """
    Build the journal entry for a resolved query.
    - Parameters named in `secret_fields` (case-insensitive) are dropped.
    - Remaining parameter values are stored as strings.
    - `result` is deep-copied so later mutation by the caller can't leak in.
    """
    hidden = {f.lower() for f in secret_fields}
    params = {
        str(k): "" if v is None else str(v)
        for k, v in (parameters or {}).items()
        if str(k).lower() not in hidden
    }
    return JournalEntry(
        timestamp=iso_timestamp(now),
        route=route,
        parameters=params,
        result=copy.deepcopy(result),
    )
