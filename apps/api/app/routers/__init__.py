from . import health, storage  # noqa: F401

__all__ = ["health", "storage"]
