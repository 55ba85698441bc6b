from __future__ import annotations


class EventFinderError(Exception):
    """Base class for errors raised by the recommendation service."""


class NotFound(EventFinderError):
    """A referenced user or event does not exist."""


class ValidationError(EventFinderError):
    """Malformed input, rejected before any ranking work begins."""


class ProviderError(EventFinderError):
    """Embedding or vector-search failure.

    Never surfaced to callers: the recommendation pipeline catches it and
    falls back to rule-based ranking.
    """


class Forbidden(EventFinderError):
    """The caller is authenticated but may not act on this resource."""
