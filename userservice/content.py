"""
Content negotiation dependencies for the JSON endpoints.
"""
from fastapi import Request, HTTPException, status

# Media ranges covering application/json, most specific first
JSON_MEDIA_RANGES = {"application/json": 2, "application/*": 1, "*/*": 0}


def _media_type(value: str) -> str:
    return value.split(";")[0].strip().lower()


def _quality(media_range: str) -> float:
    for param in media_range.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 1.0
    return 1.0


async def require_json_body(request: Request):
    """Reject request bodies that are not declared as JSON (415)."""
    content_type = request.headers.get("content-type")
    media_type = _media_type(content_type) if content_type else ""
    if media_type != "application/json" and not media_type.endswith("+json"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported content type: {content_type or 'none'}",
        )


async def require_json_accept(request: Request):
    """
    Reject clients that cannot accept a JSON response (406).

    The most specific range matching application/json decides; a q-value
    of 0 excludes it.
    """
    accept = request.headers.get("accept")
    if not accept:
        return
    best = None
    for media_range in accept.split(","):
        media_type = _media_type(media_range)
        quality = _quality(media_range)
        if media_type.endswith("+json") and quality > 0:
            return
        specificity = JSON_MEDIA_RANGES.get(media_type)
        if specificity is not None and (best is None or specificity > best[0]):
            best = (specificity, quality)
    if best is not None and best[1] > 0:
        return
    raise HTTPException(
        status_code=status.HTTP_406_NOT_ACCEPTABLE,
        detail="Only application/json responses are available",
    )
