"""Command line interface for print2pdf."""
