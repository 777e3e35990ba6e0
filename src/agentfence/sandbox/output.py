"""Capacity-limited byte sink for captured process output."""

from __future__ import annotations


class BoundedOutputSink:
    """Keeps the first ``capacity`` bytes written and silently drops the rest.

    ``write()`` always reports the full length as consumed. The reader keeps
    draining the child's pipe after the cap is hit, so the child never sees
    a broken pipe just because it printed too much.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = max(capacity, 0)
        self._buf = bytearray()
        self.truncated = False

    def write(self, data: bytes) -> int:
        remaining = self._capacity - len(self._buf)
        if remaining <= 0:
            if data:
                self.truncated = True
            return len(data)
        if len(data) > remaining:
            self._buf += data[:remaining]
            self.truncated = True
            return len(data)
        self._buf += data
        return len(data)

    def __len__(self) -> int:
        return len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def text(self) -> str:
        return self._buf.decode("utf-8", errors="replace")
