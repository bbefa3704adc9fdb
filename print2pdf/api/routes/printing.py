"""Print API routes for print2pdf.

/v1/print uploads the generated PDF to S3 and returns its URL; /v2/print
streams the PDF directly in the response body.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from print2pdf.api.config import ServiceSettings
from print2pdf.api.schemas import ErrorResponse, PrintResponse
from print2pdf.api.security import ensure_pdf_suffix, extract_cookies, is_print_allowed
from print2pdf.printing import (
    CancellationError,
    PDFPrinter,
    PrintError,
    PrintRequest,
    S3Sink,
    StreamSink,
    ValidationError,
    resolve_media,
    resolve_print_params,
)

logger = logging.getLogger(__name__)

# Chunks buffered between the printer and a slow client
STREAM_QUEUE_SIZE = 8

router = APIRouter(
    tags=["Print"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid print parameters"},
        403: {"model": ErrorResponse, "description": "URL not allowed"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    }
)


def json_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers={"X-Content-Type-Options": "nosniff"},
    )


def error_response(error: BaseException) -> JSONResponse:
    """Map a print failure to an HTTP error response."""
    if isinstance(error, ValidationError):
        logger.warning(f"Request validation error: {error}")
        return json_error(error.message, 400)
    if isinstance(error, CancellationError):
        logger.info(f"Connection closed or request canceled: {error}")
        return json_error("request cancelled", 504)

    logger.error(f"Error getting PDF: {error}", exc_info=error)
    return json_error("internal server error", 500)


def prepare_request(payload: PrintRequest, request: Request, settings: ServiceSettings) -> Optional[JSONResponse]:
    """Normalize the payload in place; return an error response if printing is refused."""
    payload.file_name = ensure_pdf_suffix(payload.file_name)
    payload.cookies = extract_cookies(request.cookies, settings.forward_cookies)

    if not is_print_allowed(payload.url, settings.print_allowed_hosts):
        return json_error("URL is not allowed", 403)
    return None


@router.post("/v1/print", response_model=PrintResponse, summary="Print a page to PDF and upload it")
async def print_v1(payload: PrintRequest, request: Request):
    """Print a web page to PDF, upload it to S3 and return the file URL."""
    settings: ServiceSettings = request.app.state.settings
    printer: PDFPrinter = request.app.state.printer

    if not settings.bucket:
        logger.error("missing required environment variable BUCKET")
        return json_error("internal server error", 500)

    refused = prepare_request(payload, request, settings)
    if refused is not None:
        return refused

    sink = S3Sink(
        settings.bucket,
        payload.file_name,
        region=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
    )
    try:
        url = await printer.print_pdf(payload, sink, timeout=settings.print_timeout_seconds)
    except PrintError as e:
        return error_response(e)

    return PrintResponse(url=url)


async def _next_chunk(queue: asyncio.Queue, task: asyncio.Task) -> Optional[bytes]:
    """Next chunk produced by the print task, or None once it finished.

    Re-raises the print task's error.
    """
    while True:
        if not queue.empty():
            return queue.get_nowait()
        if task.done():
            task.result()
            return None

        getter = asyncio.ensure_future(queue.get())
        try:
            await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not getter.done():
                getter.cancel()
        if getter.done() and not getter.cancelled():
            return getter.result()


@router.post(
    "/v2/print",
    response_class=StreamingResponse,
    responses={200: {"content": {"application/pdf": {}}}},
    summary="Print a page to PDF and stream it back"
)
async def print_v2(payload: PrintRequest, request: Request):
    """Print a web page to PDF and stream the file in the response."""
    settings: ServiceSettings = request.app.state.settings
    printer: PDFPrinter = request.app.state.printer

    refused = prepare_request(payload, request, settings)
    if refused is not None:
        return refused

    # Reject bad parameters before the response starts.
    try:
        resolve_print_params(payload)
        resolve_media(payload)
    except ValidationError as e:
        return error_response(e)

    queue: asyncio.Queue = asyncio.Queue(maxsize=STREAM_QUEUE_SIZE)
    task = asyncio.create_task(
        printer.print_pdf(payload, StreamSink(queue.put), timeout=settings.print_timeout_seconds)
    )

    try:
        first_chunk = await _next_chunk(queue, task)
    except PrintError as e:
        return error_response(e)
    except BaseException:
        task.cancel()
        raise

    headers = {"Content-Disposition": f'attachment; filename="{payload.file_name}"'}

    async def body():
        try:
            chunk = first_chunk
            while chunk is not None:
                yield chunk
                chunk = await _next_chunk(queue, task)
        except PrintError as e:
            logger.error(f"Error streaming PDF after response start: {e}")
            raise
        finally:
            if not task.done():
                logger.info("Connection closed or request canceled")
                task.cancel()

    return StreamingResponse(body(), media_type="application/pdf", headers=headers)
