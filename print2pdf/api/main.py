"""FastAPI application for the print2pdf HTTP service.

This module configures the FastAPI application with the browser lifespan,
CORS, request logging and error handling around the print endpoints.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from print2pdf import __version__
from print2pdf.api.config import ServiceSettings
from print2pdf.api.routes import print_router, status_router
from print2pdf.api.schemas import ErrorResponse
from print2pdf.api.security import cors_origin_regex
from print2pdf.printing import BrowserManager, PDFPrinter


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

APP_TITLE = "print2pdf API"
APP_DESCRIPTION = """
print2pdf prints web pages to PDF with a shared headless Chromium.

* **/v1/print**: print a page and upload the PDF to S3, returning its URL
* **/v2/print**: print a page and stream the PDF in the response
* **/status**: 204 while the browser is running
"""


def create_app(
    settings: Optional[ServiceSettings] = None,
    browser: Optional[BrowserManager] = None,
    printer: Optional[PDFPrinter] = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Service settings, read from the environment when omitted
        browser: Browser manager started and shut down with the application
        printer: Printer bound to the browser manager

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        settings = ServiceSettings.from_environment()
    if browser is None:
        browser = BrowserManager(settings.browser)
    if printer is None:
        printer = PDFPrinter(browser)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # StartupError propagates and aborts the server start
        await browser.start()
        logger.info(f"Browser started, serving on port {settings.port}")
        try:
            yield
        finally:
            await browser.shutdown()
            logger.info("Browser shut down")

    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.browser = browser
    app.state.printer = printer

    origin_regex = cors_origin_regex(settings.cors_allowed_hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if origin_regex is None else [],
        allow_origin_regex=origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    @app.middleware("http")
    async def add_request_id_and_logging(request: Request, call_next):
        """Add request ID and logging middleware."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_host": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            duration = time.time() - start_time
            logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "duration_ms": round(duration * 1000, 2),
                }
            )
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {str(e)}",
                extra={
                    "request_id": request_id,
                    "error": str(e),
                    "duration_ms": round(duration * 1000, 2),
                },
                exc_info=True
            )
            raise

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report malformed request bodies as 400 with a single message."""
        messages = []
        for error in exc.errors():
            field_path = ".".join(str(loc) for loc in error["loc"][1:])
            messages.append(f"{field_path}: {error['msg']}" if field_path else error["msg"])

        logger.warning(f"Error decoding request body: {'; '.join(messages)}")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(message="; ".join(messages) or "invalid request body").model_dump(),
            headers={"X-Content-Type-Options": "nosniff"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled exception in request {request_id}: {str(exc)}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message="internal server error").model_dump(),
        )

    app.include_router(status_router)
    app.include_router(print_router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=app.state.settings.port,
        log_level="info",
        access_log=True,
    )
