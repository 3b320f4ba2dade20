"""
Progress Reporting

Long-running stages (cube building, merging, mesh emission, export) report
coarse progress to a sink that is passed in explicitly. Nothing here is
global: a stage that receives no sink reports to NullProgress.
"""

import sys
from typing import Optional, Protocol, TextIO


class ProgressSink(Protocol):
    """Observer interface for stage progress."""

    def start(self, stage: str, total: int) -> None:
        ...

    def advance(self, amount: int = 1) -> None:
        ...

    def finish(self) -> None:
        ...


class NullProgress:
    """Progress sink that discards every update."""

    def start(self, stage: str, total: int) -> None:
        pass

    def advance(self, amount: int = 1) -> None:
        pass

    def finish(self) -> None:
        pass


class ConsoleProgress:
    """
    Writes coarse percentage lines for each stage.

    Output goes to stderr by default so it never mixes with data written
    to stdout.
    """

    def __init__(self, stream: Optional[TextIO] = None, step_percent: int = 10):
        """
        Args:
            stream: Text stream to write to (default: sys.stderr)
            step_percent: Minimum percentage increase between two lines
        """
        self.stream = stream
        self.step_percent = max(1, step_percent)
        self._stage = ""
        self._total = 0
        self._done = 0
        self._last_reported = -1

    def _write(self, text: str):
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(text + "\n")
        stream.flush()

    def start(self, stage: str, total: int) -> None:
        self._stage = stage
        self._total = max(0, int(total))
        self._done = 0
        self._last_reported = -1
        self._write(f"{stage}: 0/{self._total}")

    def advance(self, amount: int = 1) -> None:
        self._done += amount
        if self._total <= 0:
            return
        percent = min(100, self._done * 100 // self._total)
        if percent - max(self._last_reported, 0) >= self.step_percent:
            self._last_reported = percent
            self._write(f"{self._stage}: {percent}%")

    def finish(self) -> None:
        self._write(f"{self._stage}: done ({self._done}/{self._total})")


def resolve(progress: Optional[ProgressSink]) -> ProgressSink:
    """Return ``progress`` or a NullProgress when none was given."""
    return progress if progress is not None else NullProgress()
