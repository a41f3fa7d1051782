from __future__ import annotations

import sys
from typing import TextIO


def display_name(name: str) -> str:
    # undecodable file name bytes would make strict streams raise
    return name.encode("utf-8", "backslashreplace").decode("utf-8")


class AssemblyProgress:
    """Reports assets appended to the blob out of the total asset count.

    On a terminal the status line is rewritten after every asset. Elsewhere
    one line is printed per tenth of the assets, plus the last one.
    """

    label = "bindata:write"

    def __init__(self, total_assets: int, stream: TextIO | None = None) -> None:
        self.total_assets = total_assets
        self.stream = stream if stream is not None else sys.stderr
        self.is_tty = self.stream.isatty()
        self.report_every = max(1, total_assets // 10)
        self.written = 0
        self.bytes_written = 0

    def status(self, name: str) -> str:
        return f"[{self.label}] {self.written}/{self.total_assets} assets, {self.bytes_written} bytes ({display_name(name)})"

    def advance(self, name: str, size: int) -> None:
        self.written += 1
        self.bytes_written += size

        if self.is_tty:
            self.stream.write("\r\x1b[K" + self.status(name))
        elif (self.written % self.report_every) == 0 or self.written == self.total_assets:
            self.stream.write(self.status(name) + "\n")
        self.stream.flush()

    def finish(self) -> None:
        if self.is_tty and self.written:
            self.stream.write("\n")
            self.stream.flush()
