"""Service bootstrap for podplacement.

``PodPlacementApp`` owns the analyzer and everything that feeds or serves it:

1. configuration and logging
2. snapshot load (optional, non-fatal)
3. cluster connection and pod watcher (optional, non-fatal)
4. periodic recompute loop
5. REST API under uvicorn (mandatory)

``stop()`` unwinds in reverse and writes the snapshot back last, after the
watcher has delivered its final events. A failure while stopping one piece is
logged and does not keep the others running.
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import TYPE_CHECKING

from podplacement.analysis.analyzer import DisplacementAnalyzer
from podplacement.config import load_config
from podplacement.errors import PodPlacementError
from podplacement.models.config import PodPlacementConfig
from podplacement.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from podplacement.collector.pod_watcher import PodWatcher

_STOP_TIMEOUT_SECONDS = 15


class _ComponentError(Exception):
    """A component the service cannot run without failed to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


# ---------------------------------------------------------------------------
# Cluster access
# ---------------------------------------------------------------------------


async def load_k8s_config() -> None:
    """Prefer the pod's service account; fall back to the local kubeconfig."""
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    try:
        # synchronous in kubernetes-asyncio, unlike load_kube_config
        k8s_config.load_incluster_config()
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config()


def build_pod_watcher(analyzer: DisplacementAnalyzer, namespace: str = "") -> PodWatcher:
    """Create a watcher that feeds every observed pod into *analyzer*."""
    from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

    from podplacement.collector.pod_watcher import PodWatcher

    return PodWatcher(k8s_client.CoreV1Api(), sink=analyzer.record, namespace=namespace)


async def close_k8s_client() -> None:
    from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

    await k8s_client.ApiClient().close()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class PodPlacementApp:
    """The long-running service: watch pods, recompute chains, serve results.

    ``stop()`` may be called on an app that never started or already stopped.
    """

    def __init__(self, config: PodPlacementConfig | None = None) -> None:
        self.config = config
        self.analyzer = DisplacementAnalyzer()

        self._cluster_connected = False
        self._watcher: PodWatcher | None = None
        self._rest_server: object | None = None
        # recompute loop and uvicorn; cancelled first on stop()
        self._tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Bring the service up.

        Raises:
            _ComponentError: if the REST API cannot be started.
        """
        if self.config is None:
            self.config = load_config()

        setup_logging(self.config.log.level, fmt=self.config.log.format)
        self._log = get_logger("app")
        self._log.info("app_starting", version=_podplacement_version())

        self._load_snapshot()
        await self._start_watcher()
        self._start_recompute_loop()
        self._start_rest()

        self._running = True
        self._log.info(
            "app_started",
            port=self.config.api.port,
            watching=self._watcher is not None,
            records=len(self.analyzer.store),
        )

    def _load_snapshot(self) -> None:
        """Seed the store from ``snapshot.path`` and compute an initial result."""
        assert self._log is not None
        assert self.config is not None
        path = self.config.snapshot.path
        if not path:
            return
        snapshot_file = Path(path)
        if not snapshot_file.exists():
            self._log.info("snapshot_missing", path=path)
            return
        try:
            self.analyzer.import_snapshot(snapshot_file.read_bytes())
            self.analyzer.recompute()
        except (OSError, PodPlacementError) as exc:
            self._log.warning("snapshot_load_failed", path=path, error=str(exc))

    async def _start_watcher(self) -> None:
        """Start watching pods. Without a reachable cluster, stored records are still served."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.watch.enabled:
            self._log.info("pod_watch_disabled")
            return

        namespace = self.config.watch.namespace
        try:
            await load_k8s_config()
            self._cluster_connected = True
            watcher = build_pod_watcher(self.analyzer, namespace=namespace)
            await watcher.start()
        except Exception as exc:
            self._log.warning("pod_watch_unavailable", namespace=namespace or "*", error=str(exc))
            return
        self._watcher = watcher

    def _start_recompute_loop(self) -> None:
        assert self._log is not None
        assert self.config is not None
        interval = self.config.analyzer.recompute_interval_seconds
        log = self._log

        async def _recompute_periodically() -> None:
            while True:
                await asyncio.sleep(interval)
                try:
                    self.analyzer.recompute()
                except Exception as exc:
                    log.error("recompute_failed", error=str(exc))

        self._tasks.append(asyncio.create_task(_recompute_periodically(), name="recompute-loop"))
        self._log.info("recompute_loop_started", interval_seconds=interval)

    def _start_rest(self) -> None:
        assert self._log is not None
        assert self.config is not None
        port = self.config.api.port
        try:
            import uvicorn  # type: ignore[import-untyped]

            from podplacement.api import build_app

            server = uvicorn.Server(
                uvicorn.Config(
                    app=build_app(analyzer=self.analyzer, config=self.config),
                    host="0.0.0.0",
                    port=port,
                    log_config=None,  # structlog handles all logging
                    access_log=False,
                )
            )
            self._tasks.append(asyncio.create_task(server.serve(), name="rest-server"))
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc
        self._rest_server = server
        self._log.info("rest_api_started", port=port)

    async def stop(self) -> None:
        """Cancel background tasks, stop the watcher, then persist the store."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("app_stopping")
        self._running = False

        for task in reversed(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._rest_server = None

        if self._watcher is not None:
            await self._stop_watcher(self._watcher, log)
            self._watcher = None
        self._save_snapshot(log)
        if self._cluster_connected:
            try:
                await close_k8s_client()
            except Exception as exc:
                log.debug("k8s_client_close_failed", error=str(exc))
            self._cluster_connected = False

        log.info("app_stopped", records=len(self.analyzer.store))

    async def _stop_watcher(self, watcher: PodWatcher, log: structlog.stdlib.BoundLogger) -> None:
        try:
            await asyncio.wait_for(watcher.stop(), timeout=_STOP_TIMEOUT_SECONDS)
        except TimeoutError:
            log.warning("pod_watch_stop_timed_out", timeout=_STOP_TIMEOUT_SECONDS)
        except Exception as exc:
            log.error("pod_watch_stop_failed", error=str(exc))

    def _save_snapshot(self, log: structlog.stdlib.BoundLogger) -> None:
        if self.config is None or not self.config.snapshot.path:
            return
        path = self.config.snapshot.path
        try:
            Path(path).write_bytes(self.analyzer.export_snapshot())
        except (OSError, PodPlacementError) as exc:
            log.error("snapshot_save_failed", path=path, error=str(exc))
            return
        log.info("snapshot_saved", path=path, records=len(self.analyzer.store))


async def collect(duration: float, namespace: str = "") -> DisplacementAnalyzer:
    """Watch pods for *duration* seconds and return the populated analyzer."""
    analyzer = DisplacementAnalyzer()
    await load_k8s_config()
    watcher = build_pod_watcher(analyzer, namespace=namespace)
    await watcher.start()
    try:
        await asyncio.sleep(duration)
    finally:
        await watcher.stop()
        await close_k8s_client()
    return analyzer


def _podplacement_version() -> str:
    from podplacement import __version__

    return __version__


async def main() -> None:
    """Run the service until SIGTERM or SIGINT."""
    app = PodPlacementApp()
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)

    try:
        await app.start()
        await stop_requested.wait()
    except _ComponentError as exc:
        get_logger("app").critical("startup_failed", component=exc.component, error=str(exc.cause))
        raise SystemExit(1) from exc
    finally:
        await app.stop()
