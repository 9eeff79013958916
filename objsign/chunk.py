# -*- coding: utf-8 -*-
# objsign, request signing for S3 compatible object storage, (C)
# 2015-2026 objsign authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
objsign.chunk
~~~~~~~~~~~~~

This module implements streaming payload signing (``aws-chunked``).

:class:`ChunkProducer` reads a payload stream in bounded increments and
yields signed chunks framed as::

    <hex-length>;chunk-signature=<signature>\\r\\n<data>\\r\\n

ending with exactly one zero length chunk. :class:`ChunkReader` turns the
framed chunks back into a readable stream for an HTTP body writer.

:license: Apache 2.0, see LICENSE for more details.

"""

from __future__ import absolute_import, annotations

import enum
import io
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, NoReturn, Optional

from . import time
from .error import StreamReadError
from .helpers import STREAMING_PAYLOAD, Readable
from .signer import SigningContext

READ_SIZE = 128 * 1024  # 128KiB
MIN_CHUNK_SIZE = 8 * 1024  # 8KiB
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MiB

_SIGNATURE_PREFIX = b";chunk-signature="
_CRLF = b"\r\n"
_HEX_LENGTH_REGEX = re.compile(rb"[0-9a-f]+")
_HEX_SIGNATURE_REGEX = re.compile(rb"[0-9a-f]{64}")
# hex length digits are added per chunk
_CHUNK_OVERHEAD = len(_SIGNATURE_PREFIX) + 64 + 2 * len(_CRLF)


def frame_chunk(data: bytes, signature: str) -> bytes:
    """Frame chunk data with its signature for the wire."""
    return b"".join([
        f"{len(data):x}".encode(),
        _SIGNATURE_PREFIX,
        signature.encode(),
        _CRLF,
        data,
        _CRLF,
    ])


def parse_chunk(block: bytes) -> tuple[int, str, bytes]:
    """
    Parse one framed chunk into its length, signature and data. Raise
    ValueError if the block is not exactly one well formed chunk.
    """
    header, separator, rest = block.partition(_CRLF)
    if not separator:
        raise ValueError("chunk header is not terminated by CRLF")
    size, separator, signature = header.partition(_SIGNATURE_PREFIX)
    if not separator:
        raise ValueError("chunk header has no chunk-signature")
    if not _HEX_LENGTH_REGEX.fullmatch(size):
        raise ValueError(f"invalid chunk length {size!r}")
    if not _HEX_SIGNATURE_REGEX.fullmatch(signature):
        raise ValueError(f"invalid chunk signature {signature!r}")
    length = int(size, 16)
    if len(rest) != length + len(_CRLF) or not rest.endswith(_CRLF):
        raise ValueError(
            f"chunk data does not match chunk length {length}",
        )
    return length, signature.decode(), rest[:length]


def split_chunks(body: bytes) -> list[tuple[int, str, bytes]]:
    """Parse a whole framed body into list of parsed chunks."""
    chunks = []
    offset = 0
    while offset < len(body):
        end = body.find(_CRLF, offset)
        if end < 0:
            raise ValueError("chunk header is not terminated by CRLF")
        size = body[offset:end].partition(_SIGNATURE_PREFIX)[0]
        if not _HEX_LENGTH_REGEX.fullmatch(size):
            raise ValueError(f"invalid chunk length {size!r}")
        end += len(_CRLF) + int(size, 16) + len(_CRLF)
        chunks.append(parse_chunk(body[offset:end]))
        offset = end
    return chunks


def _framed_length(size: int) -> int:
    """Length of one framed chunk carrying size bytes of data."""
    return len(f"{size:x}") + _CHUNK_OVERHEAD + size


def framed_content_length(decoded_length: int, chunk_size: int) -> int:
    """
    Compute Content-Length of framed body of decoded_length bytes split by
    :class:`ChunkProducer` into chunk_size chunks, terminal chunk included.
    """
    if decoded_length < 0:
        raise ValueError(f"invalid decoded length {decoded_length}")
    if chunk_size <= 0:
        raise ValueError(f"invalid chunk size {chunk_size}")
    full_chunks, remaining = divmod(decoded_length, chunk_size)
    length = full_chunks * _framed_length(chunk_size)
    if remaining:
        length += _framed_length(remaining)
    return length + _framed_length(0)


def streaming_headers(
        decoded_length: int,
        date: datetime,
        chunk_size: Optional[int] = None,
) -> dict[str, str]:
    """
    Get headers required by streaming upload. Content-Length of framed body
    is set if chunk_size is given, else Transfer-Encoding is chunked.
    """
    headers = {
        "Content-Encoding": "aws-chunked",
        "x-amz-content-sha256": STREAMING_PAYLOAD,
        "x-amz-date": time.to_amz_date(date),
        "x-amz-decoded-content-length": str(decoded_length),
    }
    if chunk_size:
        headers["Content-Length"] = str(
            framed_content_length(decoded_length, chunk_size),
        )
    else:
        headers["Transfer-Encoding"] = "chunked"
    return headers


@dataclass(frozen=True)
class Chunk:
    """Signed payload chunk."""

    data: bytes
    prev_signature: str
    signature: str

    def frame(self) -> bytes:
        """Get wire form of this chunk."""
        return frame_chunk(self.data, self.signature)


class StreamState(enum.Enum):
    """State of :class:`ChunkProducer`."""

    BODY = "body"
    FINAL = "final"
    FINISHED = "finished"


class ChunkProducer:
    """
    Iterator of framed signed chunks read from a payload stream.

    Each step reads the stream until ``chunk_size`` bytes are accumulated
    or the stream returns empty bytes, signs the data against the previous
    signature (seed signature of ``context`` for the first chunk) and yields
    the framed chunk. After end of stream, one zero length chunk is
    yielded and the producer is finished.

    If reading the stream raises :class:`OSError`, the producer is finished
    without terminal chunk and :class:`StreamReadError` is raised. Any other
    exception from the stream also finishes the producer and is re-raised
    as is.

    :param stream: Object with ``read(size)`` method returning bytes.
    :param context: :class:`SigningContext` of the upload request.
    :param chunk_size: Size of payload data in each chunk but the last.
    """

    def __init__(
            self,
            stream: Readable,
            context: SigningContext,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if (
                not isinstance(chunk_size, int) or
                isinstance(chunk_size, bool)
        ):
            raise TypeError(
                "chunk size must be int type, "
                f"got {type(chunk_size).__name__}",
            )
        if chunk_size <= 0:
            raise ValueError(f"chunk size {chunk_size} must be positive")
        self._stream = stream
        self._chunk_size = chunk_size
        self._signer = context.chunk_signer()
        self._signature = context.seed_signature()
        self._state = StreamState.BODY
        self._offset = 0

    @property
    def state(self) -> StreamState:
        """Get current state."""
        return self._state

    @property
    def signature(self) -> str:
        """Get signature of last produced chunk, or seed signature."""
        return self._signature

    @property
    def offset(self) -> int:
        """Get number of payload bytes read so far."""
        return self._offset

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        chunk = self.next_chunk()
        if chunk is None:
            raise StopIteration
        return chunk.frame()

    def next_chunk(self) -> Optional[Chunk]:
        """Produce next signed chunk or None if finished."""
        if self._state == StreamState.BODY:
            data = self._read()
            if data:
                return self._sign(data)
        if self._state == StreamState.FINAL:
            self._state = StreamState.FINISHED
            return self._sign(b"")
        return None

    def _fail(
            self,
            size: int,
            message: str,
            cause: Optional[BaseException] = None,
    ) -> NoReturn:
        """Abort the chunk chain."""
        self._state = StreamState.FINISHED
        raise StreamReadError(self._offset + size, message) from cause

    def _read(self) -> bytes:
        """Read up to chunk size bytes from the stream."""
        data = bytearray()
        try:
            while len(data) < self._chunk_size:
                try:
                    buf = self._stream.read(
                        min(READ_SIZE, self._chunk_size - len(data)),
                    )
                except OSError as exc:
                    self._fail(len(data), str(exc), exc)
                if buf is None:
                    self._fail(len(data), "stream is not ready to read")
                if not buf:
                    self._state = StreamState.FINAL
                    break
                data.extend(buf)
        except BaseException:
            # any failure ends the chain without a terminal chunk
            self._state = StreamState.FINISHED
            raise
        self._offset += len(data)
        return bytes(data)

    def _sign(self, data: bytes) -> Chunk:
        """Sign data chained to previous signature."""
        chunk = Chunk(
            data, self._signature, self._signer.sign(self._signature, data),
        )
        self._signature = chunk.signature
        return chunk


class ChunkReader(io.RawIOBase):
    """
    Readable stream over an iterable of byte blocks such as
    :class:`ChunkProducer`.

    Blocks are pulled only as needed to fill each read; unread bytes of a
    block are kept for the next read. Reading into a zero length buffer
    returns 0 immediately, as ``read(0)`` does for any :mod:`io` stream.
    End of stream is 0 from :meth:`readinto` and empty bytes from
    :meth:`read`.
    """

    def __init__(self, chunks: Iterable[bytes]):
        super().__init__()
        self._buffer = bytearray()
        self._exhausted = False
        self._chunks = iter(chunks)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

        view = memoryview(buffer).cast("B")
        size = len(view)
        if size == 0:
            return 0

        while len(self._buffer) < size and not self._exhausted:
            try:
                self._buffer.extend(next(self._chunks))
            except StopIteration:
                self._exhausted = True

        length = min(size, len(self._buffer))
        view[:length] = self._buffer[:length]
        del self._buffer[:length]
        return length

    def close(self):
        self._buffer.clear()
        self._exhausted = True
        super().close()
