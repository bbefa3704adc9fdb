#!/usr/bin/env python3
"""
Basic printing example for print2pdf.

Starts the shared browser, prints two pages concurrently to local files,
streams a third one into memory and shuts the browser down. Requires
CHROMIUM_PATH to point at a Chromium executable.
"""

import asyncio
import logging
from pathlib import Path
import sys

# Add the parent directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from print2pdf.printing import (
    BrowserManager,
    FileSink,
    PDFPrinter,
    PrintError,
    PrintMargins,
    PrintRequest,
    StreamSink,
)


async def print_to_files(printer: PDFPrinter, output_dir: Path):
    """Print two pages at the same time, each in its own execution context."""
    print("=== Concurrent File Prints ===")

    requests = [
        PrintRequest(url="https://example.com", file_name="example.pdf"),
        PrintRequest(
            url="https://www.iana.org/help/example-domains",
            file_name="iana.pdf",
            format="Letter",
            layout="landscape",
            margin=PrintMargins(top=0.5, bottom=0.5, left=0.25, right=0.25),
        ),
    ]

    results = await asyncio.gather(
        *(printer.print_pdf(request, FileSink(output_dir / request.file_name), timeout=60)
          for request in requests),
        return_exceptions=True
    )

    for request, result in zip(requests, results):
        if isinstance(result, PrintError):
            print(f"Failed: {request.url} ({result.error_code}: {result.message})")
        else:
            print(f"Saved: {request.url} -> {result}")


async def print_to_memory(printer: PDFPrinter):
    """Stream a print into memory, as the HTTP service does for /v2/print."""
    print("\n=== Streamed Print ===")

    buffer = bytearray()

    async def write(chunk: bytes):
        buffer.extend(chunk)

    request = PrintRequest(url="https://example.com", file_name="example.pdf", media="screen")
    await printer.print_pdf(request, StreamSink(write), timeout=60)
    print(f"Received {len(buffer)} bytes, starts with {bytes(buffer[:8])!r}")


async def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO)
    output_dir = Path("./output")

    manager = BrowserManager()
    await manager.start()
    printer = PDFPrinter(manager)

    try:
        await print_to_files(printer, output_dir)
        await print_to_memory(printer)
    finally:
        await manager.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
