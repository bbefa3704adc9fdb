"""Service status route."""

from fastapi import APIRouter, Request, Response

router = APIRouter(tags=["System"])


@router.get(
    "/status",
    status_code=204,
    responses={503: {"description": "Browser not running"}},
    summary="Service status"
)
async def status(request: Request) -> Response:
    """Report 204 while the shared browser is running, 503 otherwise."""
    if request.app.state.browser.is_running:
        return Response(status_code=204)
    return Response(status_code=503)
