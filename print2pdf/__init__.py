"""print2pdf - print web pages to PDF with a shared headless Chromium."""

__version__ = "1.0.0"
