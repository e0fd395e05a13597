"""Splitting an input stream into arguments."""

from __future__ import annotations

import string
from collections.abc import Iterator
from typing import BinaryIO

from .limits import Argument, ArgumentKind

_CHUNK_SIZE = 4096
_WHITESPACE = frozenset(b" \t\n\x0c\r")
_QUOTES = frozenset(b"\"'")
_BACKSLASH = ord("\\")
_NEWLINE = ord("\n")

_SPECIAL_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "n": 0x0A,
    "r": 0x0D,
    "t": 0x09,
    "v": 0x0B,
    "\\": 0x5C,
    "0": 0x00,
}
_DIGITS = {16: frozenset(string.hexdigits), 8: frozenset(string.octdigits)}


class UnterminatedQuoteError(ValueError):
    """The input ended while a quoted argument was still open."""

    def __init__(self, quote: int) -> None:
        super().__init__(f"Unterminated quote: {quote}")
        self.quote = quote


def _read_chunks(stream: BinaryIO) -> Iterator[bytes]:
    """Yield non-empty chunks from ``stream``, retrying interrupted reads."""
    while True:
        try:
            chunk = stream.read(_CHUNK_SIZE)
        except InterruptedError:
            continue
        if not chunk:
            return
        yield chunk


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode("utf-8", errors="replace")


class WhitespaceDelimitedReader:
    """Yields arguments separated by whitespace, honouring quotes and backslashes."""

    def __init__(self, stream: BinaryIO) -> None:
        self._bytes = (byte for chunk in _read_chunks(stream) for byte in chunk)

    def __iter__(self) -> WhitespaceDelimitedReader:
        return self

    def __next__(self) -> Argument:
        result = bytearray()
        started = False
        quote: int | None = None
        escaped = False

        for byte in self._bytes:
            if quote is not None:
                if byte == quote:
                    quote = None
                else:
                    result.append(byte)
            elif escaped:
                result.append(byte)
                escaped = False
            elif byte in _QUOTES:
                quote = byte
                started = True
            elif byte == _BACKSLASH:
                escaped = True
                started = True
            elif byte in _WHITESPACE:
                if result:
                    kind = (
                        ArgumentKind.HARD_TERMINATED
                        if byte == _NEWLINE
                        else ArgumentKind.SOFT_TERMINATED
                    )
                    return Argument(_decode(result), kind)
            else:
                result.append(byte)
                started = True

        if quote is not None:
            raise UnterminatedQuoteError(quote)
        if not started:
            raise StopIteration
        return Argument(_decode(result), ArgumentKind.SOFT_TERMINATED)


class ByteDelimitedReader:
    """Yields arguments separated by a single delimiter byte; empty items are skipped."""

    def __init__(self, stream: BinaryIO, delimiter: int) -> None:
        self._chunks = _read_chunks(stream)
        self._delimiter = delimiter
        self._buffer = bytearray()
        self._eof = False

    def __iter__(self) -> ByteDelimitedReader:
        return self

    def __next__(self) -> Argument:
        while True:
            index = self._buffer.find(self._delimiter)
            if index >= 0:
                piece = bytes(self._buffer[:index])
                del self._buffer[: index + 1]
                if piece:
                    return Argument(_decode(piece), ArgumentKind.HARD_TERMINATED)
                continue
            if self._eof:
                break
            chunk = next(self._chunks, None)
            if chunk is None:
                self._eof = True
            else:
                self._buffer += chunk

        if self._buffer:
            piece = bytes(self._buffer)
            self._buffer.clear()
            return Argument(_decode(piece), ArgumentKind.HARD_TERMINATED)
        raise StopIteration


def _parse_byte(digits: str, base: int, name: str) -> int:
    body = digits[1:] if digits.startswith("+") else digits
    if not digits:
        reason = "cannot parse integer from empty string"
    elif not body or any(ch not in _DIGITS[base] for ch in body):
        reason = "invalid digit found in string"
    else:
        value = int(body, base)
        if value <= 0xFF:
            return value
        reason = "number too large to fit in target type"
    raise ValueError(f"Invalid {name} sequence: {reason}")


def parse_delimiter(text: str) -> int:
    """Parse a delimiter given as one byte or as a backslash escape."""
    if text.startswith("\\"):
        rest = text[1:]
        if rest.startswith("x"):
            return _parse_byte(rest[1:], 16, "hex")
        if rest.startswith("0"):
            return _parse_byte(rest[1:], 8, "octal")
        try:
            return _SPECIAL_ESCAPES[rest]
        except KeyError:
            raise ValueError(f"Invalid escape sequence: \\{rest}") from None
    encoded = text.encode()
    if len(encoded) == 1:
        return encoded[0]
    raise ValueError("Delimiter must be one byte")