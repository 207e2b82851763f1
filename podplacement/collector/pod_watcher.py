"""PodWatcher: streams pod add/delete events into the displacement analyzer.

Each pod yields one LifecycleRecord per owner reference. Pods without owner
references (static or bare pods) are ignored since they have no controller
to be displaced within.

The watch loop resumes from the last seen resourceVersion and reconnects
with exponential back-off; a 410 Gone answer means the version expired, so
the next attempt starts from a fresh list.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from podplacement.errors import RecordValidationError
from podplacement.models.records import LifecycleRecord

_log = structlog.get_logger(component="collector.pod_watcher")

_BACKOFF_INITIAL = 1.0
_BACKOFF_MAX = 30.0
_WATCH_TIMEOUT_SECONDS = 300
_HTTP_GONE = 410

RecordSink = Callable[[LifecycleRecord, str], None]


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 API timestamp, returning None when absent."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def records_from_pod(raw: dict[str, Any], deleted_at: datetime | None = None) -> list[LifecycleRecord]:
    """Build one LifecycleRecord per owner reference of a pod manifest.

    Args:
        raw:        Pod manifest as returned by the API (camelCase keys).
        deleted_at: Deletion time to use when the manifest carries none.
    """
    metadata = raw.get("metadata") or {}
    spec = raw.get("spec") or {}
    owners = metadata.get("ownerReferences") or []
    if not owners:
        return []

    creation = parse_timestamp(metadata.get("creationTimestamp"))
    deletion = parse_timestamp(metadata.get("deletionTimestamp")) or deleted_at
    if creation is None:
        raise RecordValidationError(f"pod {metadata.get('name')!r} has no creationTimestamp")

    return [
        LifecycleRecord(
            namespace=str(metadata.get("namespace", "")),
            owner_kind=str(owner.get("kind", "")),
            owner_name=str(owner.get("name", "")),
            pod_name=str(metadata.get("name", "")),
            node=str(spec.get("nodeName") or ""),
            creation_timestamp=creation,
            deletion_timestamp=deletion,
        )
        for owner in owners
    ]


class PodWatcher:
    """Watches pods cluster-wide (or in one namespace) and feeds a record sink."""

    def __init__(
        self,
        core_v1: Any,
        sink: RecordSink,
        namespace: str = "",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._v1 = core_v1
        self._sink = sink
        self._namespace = namespace
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._resource_version: str | None = None
        self._task: asyncio.Task[None] | None = None
        self._events_handled = 0

    @property
    def events_handled(self) -> int:
        return self._events_handled

    async def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="pod-watcher")
            _log.info("pod_watcher_started", namespace=self._namespace or "<all>")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        _log.info("pod_watcher_stopped", events=self._events_handled)

    def handle_event(self, event_type: str, raw: dict[str, Any]) -> int:
        """Record an ADDED or DELETED pod event; return the number of records emitted."""
        metadata = raw.get("metadata") or {}
        rv = metadata.get("resourceVersion")
        if rv:
            self._resource_version = str(rv)
        if event_type not in ("ADDED", "DELETED"):
            return 0

        deleted_at = self._now() if event_type == "DELETED" else None
        try:
            records = records_from_pod(raw, deleted_at=deleted_at)
        except (RecordValidationError, ValueError) as exc:
            _log.warning(
                "pod_event_rejected",
                event_type=event_type,
                namespace=metadata.get("namespace"),
                pod=metadata.get("name"),
                error=str(exc),
            )
            return 0

        for record in records:
            self._sink(record, "watch")
        self._events_handled += 1
        return len(records)

    async def _run(self) -> None:
        backoff = _BACKOFF_INITIAL
        while True:
            try:
                await self._watch_once()
                backoff = _BACKOFF_INITIAL
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if getattr(exc, "status", None) == _HTTP_GONE:
                    self._resource_version = None
                _log.warning(
                    "pod_watch_reconnecting",
                    error=str(exc),
                    backoff_seconds=backoff,
                    resource_version=self._resource_version,
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _BACKOFF_MAX)

    async def _watch_once(self) -> None:
        from kubernetes_asyncio import watch  # type: ignore[import-untyped]

        kwargs: dict[str, Any] = {"timeout_seconds": _WATCH_TIMEOUT_SECONDS}
        if self._resource_version:
            kwargs["resource_version"] = self._resource_version
        if self._namespace:
            list_fn = self._v1.list_namespaced_pod
            kwargs["namespace"] = self._namespace
        else:
            list_fn = self._v1.list_pod_for_all_namespaces

        w = watch.Watch()
        async with w.stream(list_fn, **kwargs) as stream:
            async for event in stream:
                event_type = str(event.get("type", ""))
                raw = event.get("raw_object") or {}
                if event_type == "ERROR":
                    if raw.get("code") == _HTTP_GONE:
                        self._resource_version = None
                    _log.warning("pod_watch_error_event", code=raw.get("code"), message=raw.get("message"))
                    return
                self.handle_event(event_type, raw)
