"""API routes for print2pdf.

Exports the print endpoints (/v1/print, /v2/print) and the status endpoint.
"""

from .printing import router as print_router
from .status import router as status_router

__all__ = [
    "print_router",
    "status_router",
]
