"""
YouTube Data API backed collaborators and keyword search with viral scoring.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from contentlab.domain import ChannelMetadata, VideoMetadata
from contentlab.integrations import youtube_api
from contentlab.services.collaborators import (
    ChannelMetadataProvider,
    CommentCollector,
    VideoMetadataProvider,
)
from contentlab.services.virality import calculate_viral_score, grade_distribution

logger = logging.getLogger(__name__)

COMMENT_LIMITS = {"short": 100, "long": 200}


def parse_published_at(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _to_video(item: dict[str, Any]) -> VideoMetadata:
    return VideoMetadata(
        video_id=item["video_id"],
        title=item.get("title") or "",
        channel_id=item.get("channel_id"),
        channel_title=item.get("channel_title"),
        description=item.get("description"),
        published_at=parse_published_at(item.get("published_at")),
        thumbnail_url=item.get("thumbnail_url"),
        duration_seconds=item.get("duration_seconds"),
        view_count=item.get("views") or 0,
        like_count=item.get("likes"),
        comment_count=item.get("comments"),
    )


class YouTubeVideoProvider(VideoMetadataProvider):
    async def get_videos(self, video_ids: list[str]) -> list[VideoMetadata]:
        items = await youtube_api.fetch_videos_details(video_ids)
        return [_to_video(item) for item in items]


class YouTubeChannelProvider(ChannelMetadataProvider):
    async def get_channels(self, channel_ids: list[str]) -> list[ChannelMetadata]:
        items = await youtube_api.fetch_channels(channel_ids)
        return [
            ChannelMetadata(
                channel_id=item["channel_id"],
                title=item.get("title"),
                subscriber_count=item.get("subscribers") or 0,
                view_count=item.get("views_total"),
                video_count=item.get("videos_total"),
            )
            for item in items
        ]


class YouTubeCommentCollector(CommentCollector):
    async def collect(self, video_id: str, fmt: str) -> list[str]:
        limit = COMMENT_LIMITS.get(fmt, COMMENT_LIMITS["long"])
        comments = await youtube_api.fetch_comments(video_id, limit)
        logger.info(f"[youtube] Collected {len(comments)} comments for {video_id} (limit={limit})")
        return comments


async def search_and_score(
    keyword: str,
    fmt: str = "long",
    max_results: int = 50,
    *,
    videos: VideoMetadataProvider | None = None,
    channels: ChannelMetadataProvider | None = None,
) -> dict[str, Any]:
    """Search videos by keyword and rank them by viral score (highest first)."""
    videos = videos or YouTubeVideoProvider()
    channels = channels or YouTubeChannelProvider()

    found = await youtube_api.search_videos(keyword, fmt, max_results)
    if not found:
        return {"items": [], "meta": {"keyword": keyword, "format": fmt, "totalResults": 0, "gradeDistribution": grade_distribution([])}}

    details = await videos.get_videos([item["video_id"] for item in found])
    channel_map = {
        c.channel_id: c
        for c in await channels.get_channels([v.channel_id for v in details if v.channel_id])
    }

    items = []
    for video in details:
        channel = channel_map.get(video.channel_id or "")
        subscribers = channel.subscriber_count if channel else 0
        viral = calculate_viral_score(video.view_count, subscribers, video.published_at, fmt)
        items.append(
            {
                "videoId": video.video_id,
                "title": video.title,
                "channelId": video.channel_id,
                "channelTitle": video.channel_title,
                "publishedAt": video.published_at.isoformat() if video.published_at else None,
                "thumbnailUrl": video.thumbnail_url,
                "durationSeconds": video.duration_seconds,
                "viewCount": video.view_count,
                "likeCount": video.like_count,
                "commentCount": video.comment_count,
                "subscriberCount": subscribers,
                "viralScore": viral.score,
                "viralGrade": viral.grade,
                "timeWeight": viral.time_weight,
            }
        )

    items.sort(key=lambda it: it["viralScore"], reverse=True)
    return {
        "items": items,
        "meta": {
            "keyword": keyword,
            "format": fmt,
            "totalResults": len(items),
            "gradeDistribution": grade_distribution(it["viralGrade"] for it in items),
        },
    }
