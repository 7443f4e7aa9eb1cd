from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from contentlab.services.content_config import FORMATS
from contentlab.services.youtube_source import search_and_score
from contentlab.settings import get_settings

router = APIRouter(prefix="/api", tags=["youtube"])


def _require_key() -> None:
    if not get_settings().youtube_api_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="YOUTUBE_API_KEY missing")


@router.get("/youtube/search")
async def search(
    keyword: str = Query(default=""),
    format: str = Query(default="long"),
    max_results: int = Query(default=50, ge=1, le=50),
):
    """Search YouTube by keyword; results come back ranked by viral score."""
    keyword = keyword.strip()
    if not keyword:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="keyword is required")
    if format not in FORMATS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"format must be one of {', '.join(FORMATS)}")
    _require_key()
    try:
        return await search_and_score(keyword, format, max_results)
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "YouTube search failed", "reason": str(exc)},
        ) from exc
