"""Infrastructure layer implementations."""

from src.infrastructure import notify, push, storage

__all__ = ["storage", "push", "notify"]
