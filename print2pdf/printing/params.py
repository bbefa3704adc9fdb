"""Translation of print requests into Page.printToPDF arguments.

Pure functions with no browser interaction. Any invalid caller value is
reported as ValidationError.
"""

from .exceptions import ValidationError
from .formats import DEFAULT_FORMAT, FORMATS, PrintFormat, format_names
from .models import PrintParams, PrintRequest

LAYOUTS = ("landscape", "portrait")
MEDIA_TYPES = ("screen", "print")
DEFAULT_MEDIA = "print"

# Applied when the request carries no margin object.
DEFAULT_MARGIN_INCHES = 0.4


def get_format(name: str) -> PrintFormat:
    """Look up a paper format by name.

    Raises:
        ValidationError: If the format is unknown
    """
    try:
        return FORMATS[name]
    except KeyError:
        raise ValidationError(
            f'invalid format "{name}", valid formats are: {", ".join(format_names())}',
            field="format"
        ) from None


def resolve_print_params(request: PrintRequest) -> PrintParams:
    """Resolve request parameters, with defaults, into print arguments.

    Args:
        request: Caller print request

    Returns:
        Print arguments for the DevTools print command

    Raises:
        ValidationError: If format, layout or scale is invalid
    """
    paper = get_format(request.format or DEFAULT_FORMAT)

    landscape = False
    if request.layout:
        if request.layout not in LAYOUTS:
            raise ValidationError(
                f'invalid layout "{request.layout}", valid layouts are: {", ".join(LAYOUTS)}',
                field="layout"
            )
        landscape = request.layout == "landscape"

    scale = 1.0
    if request.scale is not None:
        if request.scale <= 0:
            raise ValidationError("scale must be a positive decimal number", field="scale")
        scale = request.scale

    if request.margin is not None:
        margins = request.margin
        top, bottom, left, right = margins.top, margins.bottom, margins.left, margins.right
    else:
        top = bottom = left = right = DEFAULT_MARGIN_INCHES

    return PrintParams(
        paper_width=paper.width,
        paper_height=paper.height,
        landscape=landscape,
        print_background=True if request.background is None else request.background,
        margin_top=top,
        margin_bottom=bottom,
        margin_left=left,
        margin_right=right,
        scale=scale,
    )


def resolve_media(request: PrintRequest) -> str:
    """Return the media type to emulate while printing.

    Raises:
        ValidationError: If the media type is not 'screen' or 'print'
    """
    if not request.media:
        return DEFAULT_MEDIA
    if request.media not in MEDIA_TYPES:
        raise ValidationError(
            f'invalid media value "{request.media}", valid media values are: {", ".join(MEDIA_TYPES)}',
            field="media"
        )
    return request.media
