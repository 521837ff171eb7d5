"""Conversions between logical folder paths and object keys, plus the folder marker policy.

Logical paths always start with ``/`` and ``/`` is the root. Object keys are the
same path without the leading slash, so the root maps to the empty key.
Empty folders exist only through a zero-byte marker object named ``MARKER_NAME``.
"""

from __future__ import annotations

import re

from .errors import InvalidFolderName, InvalidPath

ROOT_PATH = "/"
DELIMITER = "/"

MARKER_NAME = ".keep"
MARKER_CONTENT_TYPE = "text/plain"
MARKER_BODY = b""

_HOSTILE_CHARACTERS = re.compile(r'[/\\:*?"<>|]')
_TRAVERSAL_SEGMENTS = {".", ".."}


def _validate_segments(original: str, segments: list[str]) -> None:
    for segment in segments:
        if not segment:
            raise InvalidPath(original, "contains an empty segment")
        if segment in _TRAVERSAL_SEGMENTS:
            raise InvalidPath(original, "must not traverse directories")


def to_key(path: str) -> str:
    """Return the object key for ``path``.

    One trailing slash is tolerated so folder paths such as ``/a/b/`` normalise
    to ``a/b``. Any path made only of slashes is the root and maps to ``""``.
    """

    if not path.startswith(DELIMITER):
        raise InvalidPath(path, "must start with '/'")
    if not path.strip(DELIMITER):
        return ""

    trimmed = path[1:]
    if trimmed.endswith(DELIMITER):
        trimmed = trimmed[:-1]
    _validate_segments(path, trimmed.split(DELIMITER))
    return trimmed


def to_path(key: str) -> str:
    return DELIMITER + key


def base_name(key: str) -> str:
    return key.rsplit(DELIMITER, 1)[-1]


def depth(path: str) -> int:
    """Number of segments below the root (``/`` is 0, ``/a/b`` is 2)."""
    return len([segment for segment in path.split(DELIMITER) if segment])


def parent_path(path: str) -> str:
    segments = [segment for segment in path.split(DELIMITER) if segment]
    if len(segments) <= 1:
        return ROOT_PATH
    return DELIMITER + DELIMITER.join(segments[:-1])


def join_path(parent: str, name: str) -> str:
    if parent == ROOT_PATH:
        return f"/{name}"
    return f"{parent.rstrip(DELIMITER)}/{name}"


def join_key(folder_path: str, name: str) -> str:
    """Key of an object called ``name`` stored in ``folder_path``."""

    folder_key = to_key(folder_path)
    if not folder_key:
        return name
    return f"{folder_key}/{name}"


def parent_chain(key: str) -> list[str]:
    """Return every ancestor folder path of ``key``, root first.

    ``a/b/c.png`` yields ``/``, ``/a`` and ``/a/b``. A folder placeholder key
    such as ``a/b/`` yields the same chain, which includes the folder itself.
    """

    if not key:
        raise InvalidPath(key, "object key is empty")
    if key.startswith(DELIMITER):
        raise InvalidPath(key, "object key must not start with '/'")

    segments = key.split(DELIMITER)
    ancestors = segments[:-1]
    _validate_segments(key, ancestors)

    chain = [ROOT_PATH]
    current = ""
    for segment in ancestors:
        current = f"{current}/{segment}"
        chain.append(current)
    return chain


def folder_key_of(key: str) -> str:
    """Key of the folder directly containing ``key`` (``""`` at the root)."""

    if DELIMITER not in key:
        return ""
    return key.rsplit(DELIMITER, 1)[0]


def is_marker(key: str) -> bool:
    return base_name(key) == MARKER_NAME


def is_folder_placeholder(key: str) -> bool:
    return key.endswith(DELIMITER)


def is_file_key(key: str) -> bool:
    """True for keys that represent real files rather than folder structure."""
    return bool(key) and not is_marker(key) and not is_folder_placeholder(key)


def marker_key(folder_path: str) -> str:
    return join_key(folder_path, MARKER_NAME)


def sanitize_folder_name(name: str) -> str:
    """Replace filesystem-hostile characters in ``name`` with underscores."""

    sanitized = _HOSTILE_CHARACTERS.sub("_", name.strip())
    if not sanitized or sanitized in _TRAVERSAL_SEGMENTS:
        raise InvalidFolderName(name)
    return sanitized


def public_url(host: str, key: str) -> str:
    return f"https://{host}/{key}"
