"""Tests for PacedReader and PacedWriter."""

import io
import shutil

import pytest

from pacer import PacedReader, PacedWriter, pace_reader, pace_writer
from pacer.errors import InvalidRateError


class ChunkSource:
    """Readable that yields fixed-size chunks and records when each read happened."""

    def __init__(self, clock, chunk: bytes, count: int):
        self.clock = clock
        self.chunk = chunk
        self.remaining = count
        self.read_times = []

    def read(self, size=-1):
        self.read_times.append(self.clock.now())
        if self.remaining == 0:
            return b""
        self.remaining -= 1
        return self.chunk


class RecordingSink:
    """Writable that accepts at most `limit` bytes per call."""

    def __init__(self, clock, limit=None):
        self.clock = clock
        self.limit = limit
        self.data = bytearray()
        self.write_times = []
        self.flushed = 0

    def write(self, b):
        self.write_times.append(self.clock.now())
        b = bytes(b)
        if self.limit is not None:
            b = b[: self.limit]
        self.data += b
        return len(b)

    def flush(self):
        self.flushed += 1


class BrokenStream:
    def read(self, size=-1):
        raise ConnectionResetError("connection reset by peer")

    def readinto(self, b):
        raise ConnectionResetError("connection reset by peer")

    def write(self, b):
        raise BrokenPipeError("broken pipe")


class WouldBlock:
    """Non-blocking stream with nothing available."""

    def read(self, size=-1):
        return None

    def readinto(self, b):
        return None

    def write(self, b):
        return None


class TestConstruction:
    @pytest.mark.parametrize("cls", [PacedReader, PacedWriter])
    @pytest.mark.parametrize("rate", [0, -10, float("nan")])
    def test_invalid_rate_fails_before_any_transfer(self, cls, rate):
        stream = io.BytesIO(b"data")
        with pytest.raises(InvalidRateError):
            cls(stream, rate)
        assert stream.tell() == 0

    def test_each_wrapper_has_its_own_controller(self, clock):
        a = PacedReader(io.BytesIO(), 10, clock=clock)
        b = PacedReader(io.BytesIO(), 10, clock=clock)
        assert a.controller is not b.controller

    def test_factories(self, clock):
        r = pace_reader(io.BytesIO(b"x"), 5, clock=clock)
        w = pace_writer(io.BytesIO(), 7, clock=clock)
        assert isinstance(r, PacedReader) and r.rate == 5
        assert isinstance(w, PacedWriter) and w.rate == 7
        assert r.readable() and not r.writable()
        assert w.writable() and not w.readable()
        assert not r.seekable()


class TestPacedReader:
    def test_read_returns_data_unchanged(self, clock):
        reader = PacedReader(io.BytesIO(b"hello world"), 1000, clock=clock)
        assert reader.read(5) == b"hello"
        assert reader.read() == b" world"
        assert reader.read() == b""

    def test_read_charges_bytes_delivered(self, clock):
        reader = PacedReader(io.BytesIO(b"a" * 300), 100, clock=clock)
        reader.read(100)
        reader.read(200)
        assert clock.sleeps == [pytest.approx(1.0), pytest.approx(2.0)]

    def test_readinto(self, clock):
        reader = PacedReader(io.BytesIO(b"abcdef"), 2, clock=clock)
        buf = bytearray(4)
        assert reader.readinto(buf) == 4
        assert buf == bytearray(b"abcd")
        assert clock.sleeps == [pytest.approx(2.0)]

    def test_readinto_falls_back_to_read(self, clock):
        source = ChunkSource(clock, b"xyz", 1)
        reader = PacedReader(source, 3, clock=clock)
        buf = bytearray(8)
        assert reader.readinto(buf) == 3
        assert buf[:3] == bytearray(b"xyz")
        assert reader.readinto(buf) == 0
        assert clock.sleeps == [pytest.approx(1.0)]

    def test_end_of_stream_is_free(self, clock):
        reader = PacedReader(io.BytesIO(b""), 10, clock=clock)
        assert reader.read(10) == b""
        assert reader.readinto(bytearray(10)) == 0
        assert reader.controller.virtual_clock is None
        assert clock.sleeps == []

    def test_errors_pass_through_without_pacing(self, clock):
        reader = PacedReader(BrokenStream(), 10, clock=clock)
        with pytest.raises(ConnectionResetError, match="connection reset"):
            reader.read(10)
        with pytest.raises(ConnectionResetError):
            reader.readinto(bytearray(10))
        assert reader.controller.virtual_clock is None
        assert clock.sleeps == []

    def test_would_block_passes_through(self, clock):
        reader = PacedReader(WouldBlock(), 10, clock=clock)
        assert reader.read(10) is None
        assert reader.readinto(bytearray(10)) is None
        assert clock.sleeps == []

    def test_line_iteration(self, clock):
        reader = PacedReader(io.BytesIO(b"one\ntwo\n"), 1000, clock=clock)
        assert list(reader) == [b"one\n", b"two\n"]

    def test_close_leaves_underlying_open(self, clock):
        source = io.BytesIO(b"data")
        with PacedReader(source, 10, clock=clock) as reader:
            reader.read(2)
        assert reader.closed
        assert reader.controller.cancelled
        assert not source.closed
        assert source.read() == b"ta"

    def test_read_after_close_raises(self, clock):
        reader = PacedReader(io.BytesIO(b"data"), 10, clock=clock)
        reader.close()
        with pytest.raises(ValueError):
            reader.read(1)

    def test_second_read_waits_a_full_second(self, clock):
        # 1000 B/s, 1000 bytes per read: the second read only happens 1s later.
        source = ChunkSource(clock, b"x" * 1000, 2)
        reader = PacedReader(source, 1000, clock=clock)
        start = clock.now()

        assert len(reader.read(1000)) == 1000
        assert len(reader.read(1000)) == 1000

        assert source.read_times[0] == start
        assert source.read_times[1] - start == pytest.approx(1.0)


class TestPacedWriter:
    def test_write_passes_data_through(self, clock):
        sink = io.BytesIO()
        writer = PacedWriter(sink, 1000, clock=clock)
        assert writer.write(b"hello") == 5
        assert sink.getvalue() == b"hello"

    def test_writes_land_half_a_second_apart(self, clock):
        # 500 B/s, 250 bytes x3: writes land at 0ms, 500ms, 1000ms.
        sink = RecordingSink(clock)
        writer = PacedWriter(sink, 500, clock=clock)
        start = clock.now()

        for _ in range(3):
            assert writer.write(b"w" * 250) == 250

        offsets = [t - start for t in sink.write_times]
        assert offsets == [0, pytest.approx(0.5), pytest.approx(1.0)]

    def test_partial_write_paces_only_written_bytes(self, clock):
        sink = RecordingSink(clock, limit=100)
        writer = PacedWriter(sink, 100, clock=clock)
        assert writer.write(b"z" * 250) == 100
        assert clock.sleeps == [pytest.approx(1.0)]
        assert bytes(sink.data) == b"z" * 100

    def test_errors_pass_through_without_pacing(self, clock):
        writer = PacedWriter(BrokenStream(), 10, clock=clock)
        with pytest.raises(BrokenPipeError):
            writer.write(b"data")
        assert writer.controller.virtual_clock is None
        assert clock.sleeps == []

    def test_would_block_passes_through(self, clock):
        writer = PacedWriter(WouldBlock(), 10, clock=clock)
        assert writer.write(b"data") is None
        assert clock.sleeps == []

    def test_zero_byte_write_is_free(self, clock):
        writer = PacedWriter(io.BytesIO(), 10, clock=clock)
        assert writer.write(b"") == 0
        assert writer.controller.virtual_clock is None

    def test_flush_delegates(self, clock):
        sink = RecordingSink(clock)
        writer = PacedWriter(sink, 10, clock=clock)
        writer.flush()
        assert sink.flushed == 1

    def test_close_does_not_close_sink(self, clock):
        sink = io.BytesIO()
        with PacedWriter(sink, 1000, clock=clock) as writer:
            writer.write(b"abc")
        assert not sink.closed
        assert sink.getvalue() == b"abc"

    def test_close_after_sink_closed(self, clock):
        sink = io.BytesIO()
        writer = PacedWriter(sink, 1000, clock=clock)
        sink.close()
        writer.close()
        assert writer.closed

    def test_drop_in_for_copyfileobj(self, clock):
        payload = bytes(range(256)) * 40
        sink = io.BytesIO()
        writer = PacedWriter(sink, 1024, clock=clock)
        start = clock.now()

        shutil.copyfileobj(io.BytesIO(payload), writer, 1024)

        assert sink.getvalue() == payload
        assert clock.now() - start == pytest.approx(len(payload) / 1024)


class TestIsatty:
    def test_false_after_wrapped_stream_closed(self, clock):
        source = io.BytesIO(b"x")
        reader = PacedReader(source, 10, clock=clock)
        source.close()
        assert reader.isatty() is False

    def test_false_after_wrapper_closed(self, clock):
        writer = PacedWriter(io.BytesIO(), 10, clock=clock)
        writer.close()
        assert writer.isatty() is False

    def test_delegates_while_open(self, clock):
        class _Tty(io.BytesIO):
            def isatty(self):
                return True

        assert PacedReader(_Tty(), 10, clock=clock).isatty() is True
