# File: flowgen/exporters.py
"""
Flowgen - File Exporter
========================
Writes rendered classes to disk.

Responsibilities:
    1. Create each destination directory (idempotent, parents included).
    2. Write every file atomically (temp file in the same directory, then
       rename).  Last write wins; no locking.
    3. Record what was written (size, line count, checksum) so the CLI can
       report it.

A failed write is recorded and the remaining files are still attempted;
files already written stay in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from flowgen.models import GeneratedFile
from flowgen.utils import Timer, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.exporters")


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    path: str
    model: str
    kind: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportResult:
    """Outcome of ``FileExporter.export()``."""

    records: List[FileRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.records)

    @property
    def paths(self) -> List[str]:
        return [r.path for r in self.records]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "files": [
                {
                    "path": r.path,
                    "model": r.model,
                    "kind": r.kind,
                    "size_bytes": r.size_bytes,
                    "line_count": r.line_count,
                    "sha256": r.sha256,
                }
                for r in self.records
            ],
            "errors": list(self.errors),
        }


# ---------------------------------------------------------------------------
# FileExporter
# ---------------------------------------------------------------------------


class FileExporter:
    """
    Writes ``GeneratedFile`` objects under a base directory.

    Relative paths in the generated files are resolved against
    *base_dir*; absolute paths are written as-is.

    Thread-safety: NOT thread-safe.  Use one exporter per output tree.
    """

    def __init__(self, base_dir: Path = Path("."), *, atomic_writes: bool = True) -> None:
        self._base_dir: Path = base_dir
        self._atomic_writes: bool = atomic_writes

    def resolve(self, generated: GeneratedFile) -> Path:
        path: Path = Path(generated.path)
        return path if path.is_absolute() else self._base_dir / path

    def export(self, files: Sequence[GeneratedFile]) -> ExportResult:
        result: ExportResult = ExportResult()

        with Timer("export") as timer:
            for generated in files:
                target: Path = self.resolve(generated)
                try:
                    size: int = write_file(target, generated.content, atomic=self._atomic_writes)
                except OSError as exc:
                    error_msg: str = f"Failed to write {target}: {type(exc).__name__}: {exc}"
                    result.errors.append(error_msg)
                    logger.error(error_msg)
                    continue

                result.records.append(
                    FileRecord(
                        path=str(target),
                        model=generated.model,
                        kind=generated.kind,
                        size_bytes=size,
                        line_count=generated.line_count,
                        sha256=sha256_hex(generated.content),
                    )
                )
                logger.info("Created %s", target)

        result.elapsed_seconds = timer.elapsed

        if result.success:
            logger.info(
                "Export completed: %d files, %d bytes, %.3fs.",
                len(result.records),
                result.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(result.errors),
                timer.elapsed,
            )
        return result


__all__: List[str] = [
    "FileRecord",
    "ExportResult",
    "FileExporter",
]
