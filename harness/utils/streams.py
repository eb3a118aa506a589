"""
Stream Utils
============
Write helpers that accept both text streams (sys.stdout, pytest capture)
and binary streams (io.BytesIO, open(..., "wb")) as output sinks.
"""
import io
from typing import IO, Iterable


def is_text_stream(stream: IO) -> bool:
    if isinstance(stream, io.TextIOBase):
        return True
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return False
    # Duck-typed sinks: trust the declared mode, default to text like print()
    return "b" not in getattr(stream, "mode", "")


def write_bytes(stream: IO, data: bytes) -> None:
    """
    Write raw bytes. Text streams backed by a binary buffer (sys.stdout,
    TextIOWrapper) get the bytes unchanged; only buffer-less text sinks
    such as StringIO receive a decoded copy.
    """
    if is_text_stream(stream):
        buffer = getattr(stream, "buffer", None)
        if buffer is None:
            stream.write(data.decode("utf-8", errors="replace"))
            stream.flush()
            return
        # Drain pending text first so ordering with earlier writes holds
        stream.flush()
        buffer.write(data)
        buffer.flush()
        return
    stream.write(data)
    stream.flush()


def write_text(stream: IO, text: str) -> None:
    if is_text_stream(stream):
        stream.write(text)
    else:
        stream.write(text.encode("utf-8"))
    stream.flush()


def fan_out(data: bytes, streams: Iterable[IO]) -> None:
    """Write the same chunk to every stream."""
    for stream in streams:
        write_bytes(stream, data)
