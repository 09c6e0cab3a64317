"""Running totals over transcoder results."""
from __future__ import annotations

from collections import Counter as _Counter

from ..transcoder import LineResult


class ResultCounter:
    """Count emitted, skipped and failed lines, with failures by error kind."""

    def __init__(self) -> None:
        self.emitted = 0
        self.skipped = 0
        self._errors: _Counter[str] = _Counter()

    def add(self, result: LineResult) -> None:
        if result.error is not None:
            self._errors[str(result.error.kind)] += 1
        elif result.output is not None:
            self.emitted += 1
        else:
            self.skipped += 1

    def top_errors(self, n: int = 10) -> list[tuple[str, int]]:
        return self._errors.most_common(n)

    @property
    def errors(self) -> int:
        return sum(self._errors.values())

    @property
    def total(self) -> int:
        return self.emitted + self.skipped + self.errors
