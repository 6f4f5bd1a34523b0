"""Helpers for dotted, fully-qualified entity paths."""

from __future__ import annotations

PATH_SEPARATOR = "."


def split_path(path: str) -> tuple[str, str]:
    """Split *path* into ``(module_prefix, last_segment)``.

    A path with no separator has an empty prefix, so ``split_path("Dog")``
    returns ``("", "Dog")``.
    """
    prefix, _, last = path.rpartition(PATH_SEPARATOR)
    return prefix, last


def join_path(prefix: str, name: str) -> str:
    """Inverse of :func:`split_path`."""
    if not prefix:
        return name
    return f"{prefix}{PATH_SEPARATOR}{name}"
