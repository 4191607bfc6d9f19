"""Output sinks that rendering functions write markup into."""

from abc import ABC, abstractmethod
from html import escape
from io import BufferedIOBase, RawIOBase


class Sink(ABC):
    """Append-only markup target."""

    @abstractmethod
    def write(self, text: str) -> None:
        """Append `text` verbatim."""

    def write_escaped(self, text: str) -> None:
        """Append `text` with HTML special characters escaped."""
        self.write(escape(text, quote=True))

    def writeln(self, text: str = '') -> None:
        self.write(text + '\n')


class StringSink(Sink):
    """Accumulates output in memory."""

    def __init__(self):
        self.parts: list[str] = []

    def write(self, text: str) -> None:
        self.parts.append(text)

    def getvalue(self) -> str:
        return ''.join(self.parts)

    def __str__(self):
        return self.getvalue()


class StreamSink(Sink):
    """Writes through to a text or binary stream (bytes are UTF-8 encoded)."""

    def __init__(self, stream, encoding: str = 'utf-8'):
        self.stream = stream
        self.encoding = encoding
        self.binary = isinstance(stream, (BufferedIOBase, RawIOBase))

    def write(self, text: str) -> None:
        if self.binary:
            self.stream.write(text.encode(self.encoding))
        else:
            self.stream.write(text)

    def flush(self) -> None:
        self.stream.flush()
