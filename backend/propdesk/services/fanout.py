# backend/propdesk/services/fanout.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.orm import Session

from ..config import settings

log = logging.getLogger(__name__)

Query = Callable[[Session], Any]


def gather(db: Session, calls: Mapping[str, Query], *, workers: Optional[int] = None) -> dict[str, Any]:
    """
    Run independent read queries and return {name: result}.

    Each call receives its own Session bound to the request session's engine,
    since a Session is not thread-safe. With workers=1 (or a single call) the
    calls run in order on `db` itself. The first failing call's exception is
    re-raised once every call has finished.
    """
    n = settings.report_fanout_workers if workers is None else workers
    if n <= 1 or len(calls) <= 1:
        return {name: fn(db) for name, fn in calls.items()}

    bind = db.get_bind()

    def _run(fn: Query) -> Any:
        with Session(bind=bind, autoflush=False) as s:
            return fn(s)

    with ThreadPoolExecutor(max_workers=min(n, len(calls)), thread_name_prefix="report") as pool:
        futures = {name: pool.submit(_run, fn) for name, fn in calls.items()}

    out: dict[str, Any] = {}
    for name, fut in futures.items():
        exc = fut.exception()
        if exc is not None:
            log.error("aggregation %s failed", name, extra={"report": name})
            raise exc
        out[name] = fut.result()
    return out
