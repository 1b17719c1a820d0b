"""Exception hierarchy for swrcache."""


class CacheError(Exception):
    """Base class for every error raised by swrcache."""


class DisposedError(CacheError, RuntimeError):
    """An operation was invoked on an orchestrator after dispose()."""

    def __init__(self, namespace: str) -> None:
        super().__init__(f"CacheOrchestrator[{namespace}] has been disposed")
        self.namespace = namespace


class StoreNotInitializedError(CacheError, RuntimeError):
    """A persistent store was used before initialize() completed."""


class InvalidIdentifierError(CacheError, ValueError):
    """An entity identifier collides with the reserved sync metadata key."""


class ChannelClosedError(CacheError, RuntimeError):
    """A state was pushed into a channel that has already been closed."""


class RemoteFetchError(CacheError):
    """The remote data source answered with a failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
