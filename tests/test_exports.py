"""Tests for package exports."""


def test_public_exports_available() -> None:
    """Test that the public API is importable from the package root."""
    from swrcache import (
        AsyncMemoryStore,
        AsyncPersistentStore,
        CacheConfig,
        CacheOrchestrator,
        CacheSource,
        CacheState,
        DisposedError,
        create_resource,
        parse_duration,
        project_first,
    )

    # Just verify they're importable
    assert CacheOrchestrator is not None
    assert CacheState is not None
    assert CacheConfig is not None
    assert CacheSource is not None
    assert AsyncMemoryStore is not None
    assert AsyncPersistentStore is not None
    assert DisposedError is not None
    assert create_resource is not None
    assert parse_duration is not None
    assert project_first is not None


def test_error_hierarchy() -> None:
    """Disposal and identifier errors keep their builtin bases."""
    from swrcache import CacheError, DisposedError, InvalidIdentifierError

    assert issubclass(DisposedError, CacheError)
    assert issubclass(DisposedError, RuntimeError)
    assert issubclass(InvalidIdentifierError, ValueError)
