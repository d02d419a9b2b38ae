import os

from brokerauth.core.compare import equals


class CountingBuffer:
    """Byte buffer that counts how many bytes a consumer reads."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.reads = 0

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self):
        for b in self._data:
            self.reads += 1
            yield b


def test_equal_buffers():
    x = os.urandom(64)
    assert equals(x, x) is True
    assert equals(x, bytes(x)) is True
    assert equals(b"", b"") is True


def test_differing_buffers():
    x = bytes(64)
    for pos in (0, 31, 63):
        y = bytearray(x)
        y[pos] ^= 0x01
        assert equals(x, bytes(y)) is False


def test_missing_buffer_fails():
    assert equals(None, b"a") is False
    assert equals(b"a", None) is False
    assert equals(None, None) is False


def test_length_mismatch_fails_without_reading():
    a = CountingBuffer(bytes(64))
    b = CountingBuffer(bytes(63))
    assert equals(a, b) is False
    assert a.reads == 0 and b.reads == 0


def test_work_independent_of_mismatch_position():
    base = os.urandom(64)
    reads = []
    for pos in (None, 0, 1, 32, 63):
        other = bytearray(base)
        if pos is not None:
            other[pos] ^= 0xFF
        a, b = CountingBuffer(base), CountingBuffer(bytes(other))
        equals(a, b)
        reads.append((a.reads, b.reads))
    assert set(reads) == {(64, 64)}
