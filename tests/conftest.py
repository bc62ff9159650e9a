import time

import pytest

from gridwc.master.app.settings import Settings


class SlowFile:
    """File stand-in that returns a short chunk every `delay` seconds, forever."""

    def __init__(self, delay=0.01):
        self.delay = delay
        self.closed = False
        self.lines_read = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.closed = True

    def read(self, size=-1):
        time.sleep(self.delay)
        self.lines_read += 1
        return b"slow slow\n"


class BrokenFile(SlowFile):
    """Returns `chunks` one per read, then fails like a disk error."""

    def __init__(self, chunks):
        super().__init__(delay=0)
        self.chunks = list(chunks)

    def read(self, size=-1):
        if self.chunks:
            return self.chunks.pop(0)
        raise OSError(5, "Input/output error")


class EndlessLine(SlowFile):
    """An infinite stream with no newline at all; records requested read sizes."""

    def __init__(self):
        super().__init__(delay=0)
        self.sizes = []

    def read(self, size=-1):
        self.sizes.append(size)
        if size is None or size < 0:
            raise AssertionError("unbounded read of an endless stream")
        return b"ab " * (size // 3)


@pytest.fixture
def write_file(tmp_path):
    def _write(name, content):
        p = tmp_path / name
        p.write_bytes(content if isinstance(content, bytes) else content.encode())
        return str(p)
    return _write


@pytest.fixture
def fast_settings():
    return Settings(DEADLINE_S=0.3, POLL_INTERVAL_S=0.01)
