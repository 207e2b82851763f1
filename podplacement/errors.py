"""Exception hierarchy for the pod placement analyzer."""

from __future__ import annotations


class PodPlacementError(Exception):
    """Base class for all errors raised by podplacement."""


class RecordValidationError(PodPlacementError, ValueError):
    """Raised when a lifecycle record is missing required data."""


class DecodeError(PodPlacementError):
    """Raised when snapshot bytes are not a well-formed record mapping.

    The record store is left untouched when this is raised.
    """


class EncodeError(PodPlacementError):
    """Raised when the record store cannot be serialized to a snapshot."""
