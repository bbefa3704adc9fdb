"""Pydantic models for print requests and resolved print parameters.

PrintRequest mirrors the JSON wire contract of the print endpoints. Its
enum-like fields are plain strings on purpose: they are checked by the
parameter resolver, which reports problems as ValidationError before any
browser work starts.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PrintMargins(BaseModel):
    """Page margins of the generated PDF, in inches."""

    top: float = Field(default=0.0, description="Top margin in inches")
    bottom: float = Field(default=0.0, description="Bottom margin in inches")
    left: float = Field(default=0.0, description="Left margin in inches")
    right: float = Field(default=0.0, description="Right margin in inches")


class PrintRequest(BaseModel):
    """Parameters for printing a web page to PDF."""

    url: str = Field(description="URL of the web page to print")
    file_name: str = Field(description="File name of the generated PDF")
    media: Optional[str] = Field(
        default=None,
        description="Media type to emulate: 'print' (default) or 'screen'"
    )
    format: Optional[str] = Field(
        default=None,
        description="Paper format name, default 'A4'"
    )
    background: Optional[bool] = Field(
        default=None,
        description="Print background graphics, default true"
    )
    layout: Optional[str] = Field(
        default=None,
        description="Page orientation: 'portrait' (default) or 'landscape'"
    )
    margin: Optional[PrintMargins] = Field(
        default=None,
        description="Page margins in inches"
    )
    scale: Optional[float] = Field(
        default=None,
        description="Rendering scale of the web page, default 1"
    )
    # Forwarded out of band by the caller, never read from the request body.
    cookies: Dict[str, str] = Field(default_factory=dict, exclude=True)

    model_config = {
        "json_schema_extra": {
            "example": {
                "url": "https://example.com/invoice/42",
                "file_name": "invoice-42.pdf",
                "format": "Letter",
                "layout": "portrait",
                "margin": {"top": 0.5, "bottom": 0.5, "left": 0.4, "right": 0.4},
            }
        }
    }


class PrintParams(BaseModel):
    """Resolved arguments of the Page.printToPDF command."""

    paper_width: float
    paper_height: float
    landscape: bool = False
    print_background: bool = True
    margin_top: float = 0.0
    margin_bottom: float = 0.0
    margin_left: float = 0.0
    margin_right: float = 0.0
    scale: float = 1.0
    generate_document_outline: bool = False

    def to_cdp_params(self) -> Dict[str, Any]:
        """Convert to Page.printToPDF arguments, returning the PDF as a stream."""
        return {
            "paperWidth": self.paper_width,
            "paperHeight": self.paper_height,
            "landscape": self.landscape,
            "printBackground": self.print_background,
            "marginTop": self.margin_top,
            "marginBottom": self.margin_bottom,
            "marginLeft": self.margin_left,
            "marginRight": self.margin_right,
            "scale": self.scale,
            "generateDocumentOutline": self.generate_document_outline,
            "transferMode": "ReturnAsStream",
        }
