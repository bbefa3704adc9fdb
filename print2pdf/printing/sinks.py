"""Destinations for generated PDF streams.

A sink consumes the PDF byte stream produced by the printer and reports
where the document ended up. Implementations provided here store to the
local filesystem, forward to an arbitrary async writer (used for direct
HTTP responses) and upload to S3-compatible object storage.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Union

import aiobotocore.session
import aiofiles
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import SinkError
from .stream_reader import PDFStreamReader
from .utils import elapsed, humanize_bytes

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class PDFSink(ABC):
    """Abstract consumer of a PDF byte stream."""

    @abstractmethod
    async def handle(self, reader: PDFStreamReader) -> str:
        """Consume the whole stream.

        Args:
            reader: Sequential reader over the generated PDF

        Returns:
            Destination identifier (local path, URL, or empty string)
        """
        pass


class FileSink(PDFSink):
    """Writes the PDF to a local file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def handle(self, reader: PDFStreamReader) -> str:
        written = 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, "wb") as f:
                async for chunk in reader:
                    await f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            raise SinkError(f"error writing {self.path}: {e}", destination=str(self.path)) from e

        logger.info(f"Saved PDF of size {humanize_bytes(written)} to {self.path}")
        return str(self.path)


class StreamSink(PDFSink):
    """Forwards the PDF to an async writer, such as an HTTP response body."""

    def __init__(self, write: Callable[[bytes], Awaitable[None]]):
        self.write = write

    async def handle(self, reader: PDFStreamReader) -> str:
        written = 0
        async for chunk in reader:
            await self.write(chunk)
            written += len(chunk)
        logger.debug(f"Streamed PDF of size {humanize_bytes(written)}")
        return ""


class S3Sink(PDFSink):
    """Uploads the PDF to an S3 bucket under a random UUID prefix."""

    # S3 minimum size for every multipart part except the last one
    PART_SIZE = 5 * 1024 * 1024

    def __init__(
        self,
        bucket: str,
        file_name: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None
    ):
        """Initialize S3 sink.

        Args:
            bucket: S3 bucket name
            file_name: File name used as the last key segment
            region: AWS region
            endpoint_url: Custom endpoint URL (for S3-compatible services)
            aws_access_key_id: AWS access key (optional, can use IAM)
            aws_secret_access_key: AWS secret key (optional, can use IAM)
        """
        self.bucket = bucket
        self.file_name = file_name
        self.region = region

        self._config: Dict[str, str] = {"region_name": region}
        if endpoint_url:
            self._config["endpoint_url"] = endpoint_url
        if aws_access_key_id and aws_secret_access_key:
            self._config["aws_access_key_id"] = aws_access_key_id
            self._config["aws_secret_access_key"] = aws_secret_access_key

        self._session = aiobotocore.session.AioSession()

    def make_key(self) -> str:
        """Object key with a random prefix, to avoid collisions."""
        return f"{uuid.uuid4()}/{self.file_name}"

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.dualstack.{self.region}.amazonaws.com/{key}"

    async def handle(self, reader: PDFStreamReader) -> str:
        key = self.make_key()
        url = self.object_url(key)

        with elapsed(f"Upload PDF to {url}", logger):
            try:
                async with self._session.create_client("s3", **self._config) as client:
                    first_part = await self._read_part(reader)
                    if reader.eof:
                        await client.put_object(
                            Bucket=self.bucket,
                            Key=key,
                            Body=first_part,
                            ContentDisposition="attachment",
                            ContentType=PDF_CONTENT_TYPE,
                        )
                        size = len(first_part)
                    else:
                        size = await self._multipart_upload(client, key, reader, first_part)
            except (ClientError, BotoCoreError) as e:
                raise SinkError(f"error uploading file: {e}", destination=url) from e

        logger.info(f"Uploaded PDF of size {humanize_bytes(size)} to {url}")
        return url

    async def _read_part(self, reader: PDFStreamReader) -> bytes:
        """Read up to PART_SIZE bytes, fewer only at end of stream."""
        part = bytearray()
        while len(part) < self.PART_SIZE and not reader.eof:
            part += await reader.read(self.PART_SIZE - len(part))
        return bytes(part)

    async def _multipart_upload(self, client, key: str, reader: PDFStreamReader, first_part: bytes) -> int:
        response = await client.create_multipart_upload(
            Bucket=self.bucket,
            Key=key,
            ContentDisposition="attachment",
            ContentType=PDF_CONTENT_TYPE,
        )
        upload_id = response["UploadId"]

        try:
            parts: List[Dict[str, object]] = []
            size = 0
            part = first_part
            part_number = 1
            while part:
                part_response = await client.upload_part(
                    Bucket=self.bucket,
                    Key=key,
                    PartNumber=part_number,
                    UploadId=upload_id,
                    Body=part
                )
                parts.append({"ETag": part_response["ETag"], "PartNumber": part_number})
                size += len(part)
                part_number += 1
                part = await self._read_part(reader)

            await client.complete_multipart_upload(
                Bucket=self.bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts}
            )
            return size

        except BaseException:
            try:
                await client.abort_multipart_upload(Bucket=self.bucket, Key=key, UploadId=upload_id)
            except (ClientError, BotoCoreError) as abort_error:
                logger.warning(f"Failed to abort multipart upload {upload_id}: {abort_error}")
            raise
