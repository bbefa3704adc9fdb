#!/usr/bin/env python3
"""Main CLI entry point for print2pdf using Typer.

Commands:
    serve    Run the HTTP service with uvicorn
    print    Print a single web page to a local PDF file
    version  Show version information
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from typing_extensions import Annotated

from print2pdf import __version__
from print2pdf.printing import (
    BrowserManager,
    FileSink,
    PDFPrinter,
    PrintError,
    PrintMargins,
    PrintRequest,
    ValidationError,
)
from print2pdf.printing.config import load_browser_settings
from print2pdf.printing.formats import format_names

logger = logging.getLogger(__name__)

# Exit codes of the print command
EXIT_PRINT_FAILED = 1
EXIT_INVALID_PARAMETERS = 2

app = typer.Typer(
    name="print2pdf",
    help="print2pdf - print web pages to PDF with headless Chromium",
    add_completion=False,
)


@app.callback()
def main():
    """
    print2pdf - print web pages to PDF with headless Chromium.

    Serve the HTTP API or print a single page from the command line.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"print2pdf v{__version__}")


@app.command()
def serve(
    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind")
    ] = "0.0.0.0",

    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to listen on (default: $PORT or 3000)")
    ] = None,

    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="YAML settings file")
    ] = None,
):
    """Run the print2pdf HTTP service."""
    import uvicorn

    from print2pdf.api.config import load_settings
    from print2pdf.api.main import create_app

    try:
        settings = load_settings(config)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(EXIT_INVALID_PARAMETERS)

    if port is not None:
        settings.port = port

    uvicorn.run(
        create_app(settings),
        host=host,
        port=settings.port,
        log_level="info",
        access_log=True,
    )


def parse_margin(value: Optional[str]) -> Optional[PrintMargins]:
    """Parse a "top,right,bottom,left" margin in inches."""
    if value is None:
        return None

    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 4:
        raise typer.BadParameter("margin must be four comma separated values: top,right,bottom,left")
    try:
        top, right, bottom, left = (float(part) for part in parts)
    except ValueError:
        raise typer.BadParameter(f"invalid margin value: {value}")

    return PrintMargins(top=top, right=right, bottom=bottom, left=left)


def parse_cookies(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated name=value cookie options."""
    cookies: Dict[str, str] = {}
    for item in values or []:
        name, sep, cookie_value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"cookie must be name=value: {item}")
        cookies[name.strip()] = cookie_value
    return cookies


async def _print_to_file(
    request: PrintRequest,
    output: Path,
    config: Optional[Path],
    timeout: Optional[float]
) -> str:
    browser = BrowserManager(load_browser_settings(config))
    await browser.start()
    try:
        return await PDFPrinter(browser).print_pdf(request, FileSink(output), timeout=timeout)
    finally:
        await browser.shutdown()


@app.command(name="print")
def print_page(
    url: Annotated[
        str,
        typer.Argument(help="URL of the web page to print")
    ],

    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Path of the PDF file to write")
    ],

    paper_format: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help=f"Paper format ({', '.join(format_names())})")
    ] = None,

    layout: Annotated[
        Optional[str],
        typer.Option("--layout", "-l", help="portrait or landscape")
    ] = None,

    media: Annotated[
        Optional[str],
        typer.Option("--media", "-m", help="Media type to emulate: print or screen")
    ] = None,

    scale: Annotated[
        Optional[float],
        typer.Option("--scale", help="Rendering scale of the web page")
    ] = None,

    no_background: Annotated[
        bool,
        typer.Option("--no-background", help="Do not print background graphics")
    ] = False,

    margin: Annotated[
        Optional[str],
        typer.Option("--margin", help="Margins in inches as top,right,bottom,left")
    ] = None,

    cookie: Annotated[
        Optional[List[str]],
        typer.Option("--cookie", help="Cookie to set as name=value (repeatable)")
    ] = None,

    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", "-t", help="Deadline in seconds for the print")
    ] = None,

    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="YAML settings file")
    ] = None,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log progress and timings")
    ] = False,
):
    """Print a web page to a local PDF file."""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)

    request = PrintRequest(
        url=url,
        file_name=output.name,
        media=media,
        format=paper_format,
        background=False if no_background else None,
        layout=layout,
        margin=parse_margin(margin),
        scale=scale,
        cookies=parse_cookies(cookie),
    )

    try:
        path = asyncio.run(_print_to_file(request, output, config, timeout))
    except ValidationError as e:
        typer.echo(f"Invalid print parameters: {e.message}", err=True)
        raise typer.Exit(EXIT_INVALID_PARAMETERS)
    except (PrintError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Print failed: {e}", err=True)
        raise typer.Exit(EXIT_PRINT_FAILED)
    except KeyboardInterrupt:
        typer.echo("Print interrupted", err=True)
        raise typer.Exit(130)

    typer.echo(path)


if __name__ == "__main__":
    app()
