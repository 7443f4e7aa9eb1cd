"""
YouTube Data API client and search scoring over httpx.MockTransport.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import httpx
import pytest

from contentlab.integrations import youtube_api
from contentlab.services.youtube_source import (
    YouTubeChannelProvider,
    YouTubeCommentCollector,
    YouTubeVideoProvider,
    parse_published_at,
    search_and_score,
)

RECENT = (datetime.now(timezone.utc) - timedelta(days=2)).strftime("%Y-%m-%dT%H:%M:%SZ")


def _video(video_id, views, channel="chan1"):
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "channelId": channel,
            "channelTitle": "Bread Lab",
            "publishedAt": RECENT,
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/{video_id}.jpg"}},
        },
        "contentDetails": {"duration": "PT1H2M3S"},
        "statistics": {"viewCount": str(views), "likeCount": "10", "commentCount": "3"},
    }


class FakeYouTube:
    """Routes requests by endpoint and records them."""

    def __init__(self, comment_pages=None, fail_status=None, transport_errors=0):
        self.requests: list[httpx.Request] = []
        self.comment_pages = comment_pages or []
        self.fail_status = fail_status
        self.transport_errors = transport_errors

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.transport_errors:
            self.transport_errors -= 1
            raise httpx.ConnectError("connection reset", request=request)
        if self.fail_status:
            return httpx.Response(self.fail_status, json={"error": {"message": "quota"}})

        path = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params
        if path == "videos":
            ids = params["id"].split(",")
            views = {"a": 50_000, "b": 900, "c": 2_000_000}
            return httpx.Response(200, json={"items": [_video(i, views.get(i, 100)) for i in ids]})
        if path == "channels":
            return httpx.Response(200, json={"items": [
                {"id": "chan1", "snippet": {"title": "Bread Lab"}, "statistics": {"subscriberCount": "10000"}},
            ]})
        if path == "search":
            return httpx.Response(200, json={"items": [
                {"id": {"videoId": v}, "snippet": {"title": v, "channelId": "chan1"}} for v in ("a", "b", "c")
            ] + [{"id": {"channelId": "not-a-video"}, "snippet": {}}]})
        if path == "commentThreads":
            page = int(params.get("pageToken", "0"))
            texts, has_next = self.comment_pages[page]
            body = {"items": [
                {"snippet": {"topLevelComment": {"snippet": {"textDisplay": t}}}} for t in texts
            ]}
            if has_next:
                body["nextPageToken"] = str(page + 1)
            return httpx.Response(200, json=body)
        return httpx.Response(404)


@pytest.fixture
def youtube():
    fake = FakeYouTube()
    with patch.object(
        youtube_api, "_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(fake.handler)),
    ):
        yield fake


class TestApiClient:

    async def test_video_details(self, youtube):
        [item] = await youtube_api.fetch_videos_details(["a"])
        assert item["views"] == 50_000
        assert item["duration_seconds"] == 3723
        assert item["thumbnail_url"] == "https://i.ytimg.com/a.jpg"
        assert youtube.requests[0].url.params["key"] == "test-key"

    async def test_ids_chunked_by_fifty(self, youtube):
        ids = [f"id{i}" for i in range(120)]
        items = await youtube_api.fetch_videos_details(ids)
        assert len(items) == 120
        assert [len(r.url.params["id"].split(",")) for r in youtube.requests] == [50, 50, 20]

    async def test_channels_dedupe_ids(self, youtube):
        channels = await youtube_api.fetch_channels(["chan1", "chan1", ""])
        assert channels[0]["subscribers"] == 10_000
        assert youtube.requests[0].url.params["id"] == "chan1"

    async def test_http_error_raises(self, youtube):
        youtube.fail_status = 403
        with pytest.raises(RuntimeError, match="YouTube videos error: 403"):
            await youtube_api.fetch_videos_details(["a"])

    async def test_single_retry_on_transport_error(self, youtube):
        youtube.transport_errors = 1
        assert len(await youtube_api.fetch_videos_details(["a"])) == 1
        assert len(youtube.requests) == 2

    async def test_missing_key(self, youtube, monkeypatch):
        from contentlab.settings import get_settings

        monkeypatch.setenv("YOUTUBE_API_KEY", "")
        get_settings.cache_clear()
        with pytest.raises(RuntimeError, match="YOUTUBE_API_KEY missing"):
            await youtube_api.fetch_videos_details(["a"])

    async def test_comments_paginate_until_limit(self, youtube):
        youtube.comment_pages = [(["c1", "c2", "c3"], True), (["c4", "c5", "c6"], True), (["c7"], False)]
        comments = await youtube_api.fetch_comments("a", 5)
        assert comments == ["c1", "c2", "c3", "c4", "c5"]
        assert len(youtube.requests) == 2
        assert youtube.requests[0].url.params["order"] == "relevance"

    @pytest.mark.parametrize("value,expected", [("PT45S", 45), ("PT3M", 180), ("P1DT1H", 90000), ("", None), ("P0D", None)])
    def test_iso_duration(self, value, expected):
        assert youtube_api._parse_iso8601_duration(value) == expected


class TestProviders:

    async def test_video_provider_maps_metadata(self, youtube):
        [video] = await YouTubeVideoProvider().get_videos(["c"])
        assert video.view_count == 2_000_000
        assert video.channel_id == "chan1"
        assert video.published_at.tzinfo is not None

    async def test_channel_provider(self, youtube):
        [channel] = await YouTubeChannelProvider().get_channels(["chan1"])
        assert channel.subscriber_count == 10_000
        assert channel.title == "Bread Lab"

    async def test_comment_limit_by_format(self, youtube):
        youtube.comment_pages = [([f"c{i}" for i in range(100)], True), ([f"d{i}" for i in range(100)], True)]
        assert len(await YouTubeCommentCollector().collect("a", "short")) == 100
        youtube.requests.clear()
        assert len(await YouTubeCommentCollector().collect("a", "long")) == 200

    def test_parse_published_at(self):
        assert parse_published_at("2026-01-02T03:04:05Z") == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert parse_published_at(None) is None


class TestSearch:

    async def test_ranked_by_viral_score(self, youtube):
        result = await search_and_score("sourdough", "long", 10)
        assert [i["videoId"] for i in result["items"]] == ["c", "a", "b"]
        assert result["items"][0]["viralGrade"] == "S"
        assert result["items"][0]["subscriberCount"] == 10_000
        assert result["meta"]["totalResults"] == 3
        assert sum(result["meta"]["gradeDistribution"].values()) == 3

        search_request = youtube.requests[0]
        assert search_request.url.params["q"] == "sourdough"
        assert search_request.url.params["videoDuration"] == "medium"

    async def test_short_search_filters_duration(self, youtube):
        await search_and_score("bread", "short", 5)
        assert youtube.requests[0].url.params["videoDuration"] == "short"
        assert youtube.requests[0].url.params["maxResults"] == "5"
