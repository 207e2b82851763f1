"""Collector package for podplacement.

Provides the Kubernetes watch-stream collector that turns pod add/delete
events into lifecycle records.

Submodules
----------
pod_watcher -- PodWatcher: owner-reference fan-out, resume and back-off.
"""

from podplacement.collector.pod_watcher import PodWatcher, records_from_pod

__all__ = ["PodWatcher", "records_from_pod"]
