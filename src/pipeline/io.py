"""
File I/O adapter of the pipeline.

The core pipeline is synchronous. Asynchrony only exists here, at the file
boundary: `read_text_async` reads on a worker thread for asyncio callers, and
`write_text` with a callback writes on a thread pool and reports completion
through a `concurrent.futures.Future`.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
WriteCallback = Callable[[Optional[BaseException]], None]

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="es6to5-io")


class SourceIOError(OSError):
    """A source or output file could not be read or written."""

    def __init__(self, message: str, path: PathLike):
        super().__init__(message)
        self.path = str(path)


def read_text(path: PathLike) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceIOError(f"Failed to read {path}: {exc}", path) from exc


async def read_text_async(path: PathLike) -> str:
    """Read `path` on a worker thread; the event loop is never blocked."""
    return await asyncio.to_thread(read_text, path)


def _write(path: PathLike, text: str) -> None:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise SourceIOError(f"Failed to write {path}: {exc}", path) from exc
    logger.debug("Wrote %d characters to %s", len(text), target)


def write_text(
    path: PathLike, text: str, callback: Optional[WriteCallback] = None
) -> Optional[Future]:
    """
    Write `text` to `path`.

    Without a callback the write is synchronous and OS errors raise
    `SourceIOError`. With a callback the write runs on a worker thread and
    `callback` is invoked exactly once, with whatever the write raised
    (usually `SourceIOError`) or `None` on success; the returned future
    resolves after the callback ran and re-raises the failure.
    """
    if callback is None:
        _write(path, text)
        return None

    def run() -> None:
        try:
            _write(path, text)
        except Exception as exc:
            callback(exc)
            raise
        callback(None)

    return _executor.submit(run)


__all__ = ["PathLike", "SourceIOError", "WriteCallback", "read_text", "read_text_async", "write_text"]
