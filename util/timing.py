# util/timing.py
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator


@contextmanager
def timed(
    logger: logging.Logger, name: str, level: int = logging.DEBUG, **kv: Any
) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "journal.blob.append", dataset="dni.json"):
          ...
    Emits one record on exit: "<name>.done ms=<int> key=val ..."
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.log(level, "%s.done ms=%d%s", name, dt_ms, suffix)
