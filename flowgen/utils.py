# File: flowgen/utils.py
"""
Flowgen - Utility Functions & Helpers
======================================
String transformation, rule parsing, file I/O and timing helpers used
throughout the generation pipeline.

- Pure string helpers are wrapped in ``@lru_cache`` since the same field
  names and rule strings are converted many times per run.
- File writes go through a temp file + rename so a crash never leaves a
  half-written class behind.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_WORD_RE: re.Pattern[str] = re.compile(r"\S+")


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("OrderItem")
        'order_item'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation, enough for table names.

    Only the last word of a snake_case name is pluralised.
    """
    if not name:
        return ""

    head, sep, last = name.rpartition("_")
    lower: str = last.lower()

    irregulars: Dict[str, str] = {
        "person": "people",
        "child": "children",
        "man": "men",
        "woman": "women",
        "datum": "data",
        "index": "indices",
        "status": "statuses",
        "address": "addresses",
    }

    if lower in irregulars:
        plural: str = irregulars[lower]
    elif lower.endswith("s") and not lower.endswith("ss"):
        plural = last
    elif lower.endswith(("sh", "ch", "x", "z", "ss")):
        plural = last + "es"
    elif lower.endswith("y") and len(last) > 1 and lower[-2] not in "aeiou":
        plural = last[:-1] + "ies"
    else:
        plural = last + "s"

    return f"{head}{sep}{plural}"


@functools.lru_cache(maxsize=None)
def title_words(text: str) -> str:
    """
    Upper-case the first letter of every whitespace-separated word.

    The rest of each word is left untouched and whitespace is preserved.

        >>> title_words("first name")
        'First Name'
    """
    return _WORD_RE.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:], text)


@functools.lru_cache(maxsize=None)
def humanize_field_name(name: str) -> str:
    """``first_name`` → ``First Name``."""
    return title_words(name.replace("_", " "))


@functools.lru_cache(maxsize=None)
def split_rule(rule: str) -> Tuple[str, Optional[str]]:
    """
    Split a rule into its key and argument.

        >>> split_rule("max:255")
        ('max', '255')
        >>> split_rule("in:a,b,c")
        ('in', 'a,b,c')
        >>> split_rule("required")
        ('required', None)
    """
    key, sep, argument = rule.partition(":")
    return key, (argument if sep else None)


def rule_key(rule: str) -> str:
    """The keyword portion of a rule (text before the first ``:``)."""
    return split_rule(rule)[0]


def class_basename(fqcn: str, separator: str = "\\") -> str:
    """
    Short class name from a fully-qualified one.

        >>> class_basename("Flowlight\\\\BaseData")
        'BaseData'
    """
    if not fqcn:
        return ""
    return fqcn.rstrip(separator).rsplit(separator, 1)[-1]


def php_quote(value: str) -> str:
    """Wrap *value* in single quotes, escaping backslashes and quotes."""
    escaped: str = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create *path* (and parents) if it does not exist. Idempotent."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*, creating the parent directory first.

    When *atomic* is True the content goes to a temporary file in the same
    directory which is then renamed over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("render dto") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__: List[str] = [
    "to_snake_case",
    "to_plural",
    "title_words",
    "humanize_field_name",
    "split_rule",
    "rule_key",
    "class_basename",
    "php_quote",
    "ensure_directory",
    "write_file",
    "sha256_hex",
    "Timer",
]
