"""Multiprocessing transcoder for large log files.

Strategy:
    1. Split the file into up to N line-aligned byte ranges (one per CPU core).
    2. Each worker process transcodes the lines in its range and returns
       one outcome per line.
    3. The main process numbers the lines and yields results in file order.

Usage::

    from singer_metrics.perf.parallel import transcode_file_parallel

    for result in transcode_file_parallel("tap.log", Transcoder(), workers=8):
        ...
"""
from __future__ import annotations

import dataclasses
import os
from multiprocessing import Pool
from typing import Iterator

from ..errors import LineError
from ..transcoder import LineResult, Transcoder

# (transcoder, path, start_byte, end_byte); start inclusive, end exclusive
_Chunk = tuple[Transcoder, str, int, int]

_Outcome = str | LineError | None


def _transcode_chunk(args: _Chunk) -> list[_Outcome]:
    """Worker function: transcode the lines in [start_byte, end_byte)."""
    transcoder, path, start, end = args
    results: list[_Outcome] = []

    with open(path, "rb") as fh:
        fh.seek(start)
        while fh.tell() < end:
            raw = fh.readline()
            if not raw:
                break
            results.append(transcoder.transcode_line(raw))

    return results


def _split_file(path: str, n_chunks: int) -> list[tuple[int, int]]:
    """Divide a file into at most n_chunks ranges that start on a line."""
    size = os.path.getsize(path)
    if size == 0:
        return []
    bounds = [0]
    with open(path, "rb") as fh:
        for i in range(1, n_chunks):
            target = i * size // n_chunks
            if target <= bounds[-1]:
                continue
            # move to the start of the line after the one holding target - 1
            fh.seek(target - 1)
            fh.readline()
            if bounds[-1] < fh.tell() < size:
                bounds.append(fh.tell())
    bounds.append(size)
    return list(zip(bounds, bounds[1:]))


def _number(batches: Iterator[list[_Outcome]]) -> Iterator[LineResult]:
    line_no = 0
    for batch in batches:
        for outcome in batch:
            line_no += 1
            if isinstance(outcome, LineError):
                yield LineResult(line_no, error=dataclasses.replace(outcome, line_no=line_no))
            else:
                yield LineResult(line_no, output=outcome)


def transcode_file_parallel(
    path: str,
    transcoder: Transcoder,
    workers: int | None = None,
) -> Iterator[LineResult]:
    """Transcode a large log file using multiprocessing.

    Args:
        path:       Path to the log file.
        transcoder: Configured transcoder, pickled to each worker.
        workers:    Number of worker processes. Defaults to os.cpu_count().

    Yields:
        One LineResult per input line, in file order.
    """
    n = workers or os.cpu_count() or 4
    chunks = [(transcoder, path, start, end) for start, end in _split_file(path, n)]
    if not chunks:
        return

    if len(chunks) == 1:
        # one chunk: no pool
        yield from _number(iter([_transcode_chunk(chunks[0])]))
        return

    with Pool(processes=len(chunks)) as pool:
        yield from _number(pool.imap(_transcode_chunk, chunks))
