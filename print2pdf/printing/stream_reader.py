"""Sequential reader over a DevTools protocol stream handle.

Page.printToPDF in "ReturnAsStream" transfer mode returns a handle instead
of the document. The document is then pulled with IO.read calls, each
addressed by offset, bounded by size and base64 encoded, and the handle is
released with IO.close. PDFStreamReader turns that into a pull-based byte
source.

See:
    https://chromedevtools.github.io/devtools-protocol/tot/Page/#method-printToPDF
    https://chromedevtools.github.io/devtools-protocol/tot/IO/
"""

import base64
import binascii
import logging
from typing import AsyncIterator, NamedTuple, Union

from .exceptions import PrintError, ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


class ReadResult(NamedTuple):
    """Outcome of one readinto() call.

    count bytes were copied into the buffer; eof is true when the stream
    has been fully consumed, possibly together with a final non-empty
    chunk.
    """
    count: int
    eof: bool


class PDFStreamReader:
    """Pull-based, non-restartable reader over one protocol stream handle."""

    def __init__(self, context, handle: str):
        """Initialize stream reader.

        Args:
            context: Execution context that owns the stream
            handle: Stream handle returned by Page.printToPDF
        """
        self.context = context
        self.handle = handle
        self.offset = 0
        self._eof = False
        self._closed = False

    @property
    def eof(self) -> bool:
        return self._eof

    @property
    def closed(self) -> bool:
        return self._closed

    async def readinto(self, buffer: Union[bytearray, memoryview]) -> ReadResult:
        """Read up to len(buffer) bytes at the current offset into buffer.

        Raises:
            CancellationError: If the owning execution context was closed
            ProtocolError: If the read fails, returns undecodable data or the browser went away
            ValueError: If the reader was closed
        """
        if self._closed:
            raise ValueError("read from closed PDF stream")
        if self._eof:
            return ReadResult(0, True)
        if len(buffer) == 0:
            return ReadResult(0, False)

        response = await self.context.send("IO.read", {
            "handle": self.handle,
            "offset": self.offset,
            "size": len(buffer),
        })
        data = response.get("data") or ""
        eof = bool(response.get("eof"))

        if not data and eof:
            self._eof = True
            return ReadResult(0, True)

        if response.get("base64Encoded", True):
            try:
                decoded = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ProtocolError(f"invalid base64 data in stream {self.handle}: {e}", method="IO.read") from e
        else:
            decoded = data.encode("utf-8")

        count = min(len(decoded), len(buffer))
        buffer[:count] = decoded[:count]
        self.offset += count
        # Bytes past the buffer are read again from the new offset.
        eof = eof and count == len(decoded)
        if eof:
            self._eof = True
        return ReadResult(count, eof)

    async def read(self, size: int = -1) -> bytes:
        """Read up to size bytes; all remaining bytes when size is negative.

        Returns b"" once the stream is exhausted.
        """
        if size is None or size < 0:
            chunks = []
            async for chunk in self:
                chunks.append(chunk)
            return b"".join(chunks)

        buffer = bytearray(size)
        count, _ = await self.readinto(buffer)
        return bytes(buffer[:count])

    async def __aiter__(self) -> AsyncIterator[bytes]:
        buffer = bytearray(DEFAULT_CHUNK_SIZE)
        while True:
            count, eof = await self.readinto(buffer)
            if count:
                yield bytes(buffer[:count])
            if eof:
                return

    async def close(self) -> None:
        """Release the stream handle. Only the first call reaches the browser.

        Raises:
            ProtocolError: If the browser fails to release the handle
        """
        if self._closed:
            return
        self._closed = True

        if self.context.is_closed:
            # The handle was released together with its context.
            logger.debug(f"Stream {self.handle} released with its execution context")
            return
        await self.context.send("IO.close", {"handle": self.handle})

    async def abort(self) -> None:
        """Release the handle after a failed transfer, logging close errors."""
        try:
            await self.close()
        except PrintError as e:
            logger.warning(f"Failed to release PDF stream {self.handle}: {e}")

    async def __aenter__(self) -> "PDFStreamReader":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.close()
        else:
            await self.abort()

    def __repr__(self) -> str:
        return f"PDFStreamReader(handle={self.handle}, offset={self.offset}, eof={self._eof})"
