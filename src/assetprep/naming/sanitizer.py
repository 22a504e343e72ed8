"""Web-safe name sanitization.

The pipeline below runs in a fixed order, each step consuming the output of
the previous one:

1. metadata removal (bracket groups, ``_WxH`` suffixes) when enabled
2. whitespace replacement
3. ampersand handling
4. problematic character removal and bracket conversion
5. separator collapsing and trimming
6. base-name case folding
7. extension case folding

Steps 1-6 repeat until the base name stops changing, so sanitizing an already
sanitized name is a no-op.
"""

from __future__ import annotations

import random
import re

from .models import SanitizationOptions, SpaceReplacement

FALLBACK_PREFIX = "unnamed_"

_PAREN_GROUP = re.compile(r"\([^()]*\)")
_BRACKET_GROUP = re.compile(r"\[[^\[\]]*\]")
_DIMENSION_SUFFIX = re.compile(r"(?:[_-]\d+x\d+)+$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_REPEATED_AND = re.compile(r"(?:_and)+_")
_DELETED_CHARS = re.compile(r"[*\":;|,=+$?%#<>!@^~`'\\]")
_BRACKET_CHARS = re.compile(r"[()\[\]]")
_REPEATED_UNDERSCORE = re.compile(r"_+")
_REPEATED_DASH = re.compile(r"-+")
_REPEATED_DOT = re.compile(r"\.+")

_SPACE_TOKENS = {
    SpaceReplacement.REMOVE: "",
    SpaceReplacement.DASH: "-",
    SpaceReplacement.UNDERSCORE: "_",
}

# Bound on pipeline passes; real names settle in two or three.
_MAX_PASSES = 16


def sanitize_name(name: str, extension: str, options: SanitizationOptions) -> str:
    """Return the sanitized form of ``name`` followed by ``extension``.

    Args:
        name: Base name without its extension.
        extension: Extension including the leading dot, or an empty string.
        options: Sanitization options for the run.

    Returns:
        str: Sanitized name. Falls back to ``unnamed_<n>`` when nothing survives.
    """

    base = name
    for _ in range(_MAX_PASSES):
        updated = _apply_pipeline(base, options)
        if updated == base:
            break
        base = updated

    if options.lowercase_extensions:
        extension = extension.lower()

    if not base.strip():
        base = f"{FALLBACK_PREFIX}{random.randint(0, 9999)}"
    return f"{base}{extension}"


def sanitize_filename(filename: str, is_directory: bool, options: SanitizationOptions) -> str:
    """Sanitize a leaf name, splitting off the extension for files.

    Args:
        filename: Leaf name as found on disk.
        is_directory: Directories keep dots in the name and have no extension.
        options: Sanitization options for the run.

    Returns:
        str: Sanitized leaf name.
    """

    if is_directory:
        return sanitize_name(filename, "", options)
    base, extension = split_extension(filename)
    return sanitize_name(base, extension, options)


def split_extension(filename: str) -> tuple[str, str]:
    """Split ``filename`` into base name and extension.

    Leading dots do not start an extension, so ``.gitignore`` has none.
    """

    stripped = filename.lstrip(".")
    index = stripped.rfind(".")
    if index <= 0:
        return filename, ""
    offset = len(filename) - len(stripped)
    return filename[: offset + index], filename[offset + index :]


def _apply_pipeline(name: str, options: SanitizationOptions) -> str:
    if options.remove_metadata:
        name = _remove_metadata(name)

    name = _WHITESPACE.sub(_SPACE_TOKENS[options.space_replacement], name)

    if options.expand_ampersand:
        name = _REPEATED_UNDERSCORE.sub("_", name.replace("&", "_and_"))
        name = _REPEATED_AND.sub("_and_", name)
    else:
        name = name.replace("&", "_")

    name = _DELETED_CHARS.sub("", name)
    name = _BRACKET_CHARS.sub("-", name)

    name = _collapse_separators(name).strip("_-.")

    if not options.preserve_case:
        name = name.lower()
    return name


def _remove_metadata(name: str) -> str:
    previous = None
    while previous != name:
        previous = name
        name = _PAREN_GROUP.sub("", name)
        name = _BRACKET_GROUP.sub("", name)
    name = name.strip()
    name = _DIMENSION_SUFFIX.sub("", name)
    name = _REPEATED_UNDERSCORE.sub("_", name)
    name = _REPEATED_DASH.sub("-", name)
    return name.strip().strip("_-").strip()


def _collapse_separators(name: str) -> str:
    name = _REPEATED_UNDERSCORE.sub("_", name)
    name = _REPEATED_DASH.sub("-", name)
    return _REPEATED_DOT.sub(".", name)


__all__ = ["sanitize_name", "sanitize_filename", "split_extension", "FALLBACK_PREFIX"]
