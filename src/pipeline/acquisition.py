"""
Incremental file acquisition with progress events.

Reading happens here, outside the pure pipeline: the file is consumed in
chunks, a ``ProgressEvent`` is emitted per chunk, and only the complete buffer
is handed on to :func:`~src.pipeline.orchestrator.ingest_and_cluster`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union


DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ProgressEvent:
    """Read progress for one file."""

    percent: int
    """0-100."""

    bytes_read: int
    total_bytes: int


ProgressCallback = Callable[[ProgressEvent], None]


def read_with_progress(
    path: Union[str, Path],
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bytes:
    """
    Read ``path`` fully, reporting progress after every chunk.

    Emits a 0% event before the first read and always ends with a 100% event
    (also for empty files).
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    total = os.path.getsize(path)

    def emit(read: int) -> None:
        if on_progress is None:
            return
        percent = 100 if total == 0 else min(100, (read * 100) // total)
        on_progress(ProgressEvent(percent=percent, bytes_read=read, total_bytes=total))

    chunks = []
    read = 0
    if total:
        emit(0)
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
            read += len(chunk)
            if read < total:
                emit(read)

    if on_progress is not None:
        on_progress(ProgressEvent(percent=100, bytes_read=read, total_bytes=max(total, read)))
    return b"".join(chunks)
