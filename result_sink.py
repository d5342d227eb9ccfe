import threading
from pathlib import Path


class ResultSink:
    """Append-only output file. One write+flush at a time."""

    def __init__(self, path):
        self.path = Path(path)
        self._f = self.path.open("a", encoding="utf-8")
        self._lock = threading.Lock()
        self.written = 0

    def write(self, result):
        with self._lock:
            self._f.write(result.text)
            self._f.flush()
            self.written += 1

    def close(self):
        with self._lock:
            self._f.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
