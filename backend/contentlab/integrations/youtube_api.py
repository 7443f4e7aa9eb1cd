from __future__ import annotations

from typing import Any

import httpx

from contentlab.settings import get_settings

YT_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
YT_CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"
YT_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
YT_COMMENT_THREADS_URL = "https://www.googleapis.com/youtube/v3/commentThreads"

# videos.list / channels.list accept at most 50 ids per call
MAX_IDS_PER_REQUEST = 50
COMMENTS_PAGE_SIZE = 100


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=15.0)


def _api_key() -> str:
    settings = get_settings()
    if not settings.youtube_api_key:
        raise RuntimeError("YOUTUBE_API_KEY missing")
    return settings.youtube_api_key


async def _get_json(url: str, params: dict[str, Any], what: str) -> dict:
    async with _client() as client:
        try:
            resp = await client.get(url, params=params)
        except (httpx.TransportError, httpx.TimeoutException):
            # single retry
            resp = await client.get(url, params=params)
    if resp.status_code >= 400:
        raise RuntimeError(f"YouTube {what} error: {resp.status_code}")
    return resp.json()


def _int_or_none(value: Any) -> int | None:
    return int(value) if value is not None else None


def _thumbnail(snippet: dict) -> str | None:
    thumbs = snippet.get("thumbnails") or {}
    return (thumbs.get("high") or {}).get("url") or (thumbs.get("default") or {}).get("url")


def _parse_iso8601_duration(duration: str | None) -> int | None:
    if not duration:
        return None
    # PT#H#M#S, optionally prefixed with P#D
    total = 0
    num = ""
    units = {"D": 86400, "H": 3600, "M": 60, "S": 1}
    for ch in duration.replace("P", "").replace("T", ""):
        if ch.isdigit():
            num += ch
        elif ch in units and num:
            total += int(num) * units[ch]
            num = ""
    return total if total > 0 else None


def _chunks(ids: list[str], size: int = MAX_IDS_PER_REQUEST) -> list[list[str]]:
    return [ids[i:i + size] for i in range(0, len(ids), size)]


async def fetch_videos_details(video_ids: list[str]) -> list[dict[str, Any]]:
    if not video_ids:
        return []
    key = _api_key()
    items: list[dict[str, Any]] = []
    for chunk in _chunks(video_ids):
        params = {
            "part": "snippet,contentDetails,statistics",
            "id": ",".join(chunk),
            "key": key,
        }
        data = await _get_json(YT_VIDEOS_URL, params, "videos")
        for item in data.get("items", []):
            snippet = item.get("snippet", {}) or {}
            stats = item.get("statistics", {}) or {}
            content = item.get("contentDetails", {}) or {}
            items.append(
                {
                    "video_id": item.get("id"),
                    "title": snippet.get("title") or "",
                    "description": snippet.get("description"),
                    "channel_id": snippet.get("channelId"),
                    "channel_title": snippet.get("channelTitle"),
                    "thumbnail_url": _thumbnail(snippet),
                    "published_at": snippet.get("publishedAt"),
                    "duration_seconds": _parse_iso8601_duration(content.get("duration")),
                    "views": _int_or_none(stats.get("viewCount")),
                    "likes": _int_or_none(stats.get("likeCount")),
                    "comments": _int_or_none(stats.get("commentCount")),
                }
            )
    return items


async def fetch_channels(channel_ids: list[str]) -> list[dict[str, Any]]:
    ids = [cid for cid in dict.fromkeys(channel_ids) if cid]
    if not ids:
        return []
    key = _api_key()
    channels: list[dict[str, Any]] = []
    for chunk in _chunks(ids):
        params = {
            "part": "statistics,snippet",
            "id": ",".join(chunk),
            "key": key,
        }
        data = await _get_json(YT_CHANNELS_URL, params, "channels")
        for item in data.get("items", []):
            stats = item.get("statistics", {}) or {}
            snippet = item.get("snippet", {}) or {}
            channels.append(
                {
                    "channel_id": item.get("id"),
                    "title": snippet.get("title"),
                    # hidden subscriber counts come back without the field
                    "subscribers": _int_or_none(stats.get("subscriberCount")),
                    "views_total": _int_or_none(stats.get("viewCount")),
                    "videos_total": _int_or_none(stats.get("videoCount")),
                }
            )
    return channels


async def fetch_comments(video_id: str, max_results: int) -> list[str]:
    """Top-level comment texts in relevance order, up to ``max_results``."""
    key = _api_key()
    comments: list[str] = []
    page_token: str | None = None
    while len(comments) < max_results:
        params = {
            "part": "snippet",
            "videoId": video_id,
            "maxResults": COMMENTS_PAGE_SIZE,
            "order": "relevance",
            "textFormat": "plainText",
            "key": key,
        }
        if page_token:
            params["pageToken"] = page_token
        data = await _get_json(YT_COMMENT_THREADS_URL, params, "commentThreads")
        for item in data.get("items", []):
            top = ((item.get("snippet") or {}).get("topLevelComment") or {}).get("snippet") or {}
            text = top.get("textDisplay") or top.get("textOriginal")
            if text:
                comments.append(text)
            if len(comments) >= max_results:
                break
        page_token = data.get("nextPageToken")
        if not page_token:
            break
    return comments


async def search_videos(keyword: str, fmt: str = "long", max_results: int = 50) -> list[dict[str, Any]]:
    """Search by keyword, most viewed first; short format only returns < 4 min videos."""
    params = {
        "part": "snippet",
        "q": keyword,
        "type": "video",
        "videoDuration": "short" if fmt == "short" else "medium",
        "maxResults": min(max_results, 50),
        "order": "viewCount",
        "key": _api_key(),
    }
    data = await _get_json(YT_SEARCH_URL, params, "search")
    results = []
    for item in data.get("items", []):
        video_id = (item.get("id") or {}).get("videoId")
        if not video_id:
            continue
        snippet = item.get("snippet", {}) or {}
        results.append(
            {
                "video_id": video_id,
                "title": snippet.get("title") or "",
                "channel_id": snippet.get("channelId"),
                "channel_title": snippet.get("channelTitle"),
                "published_at": snippet.get("publishedAt"),
                "thumbnail_url": _thumbnail(snippet),
            }
        )
    return results
