# hara/video.py
import logging
from typing import Any, Dict, List, Optional

import httpx
from youtube_transcript_api import YouTubeTranscriptApi

log = logging.getLogger("hara")

SERPAPI_URL = "https://serpapi.com/search.json"
DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
MAX_RESULTS = 20


def _thumb(v: Dict[str, Any]) -> str:
    thumb = v.get("thumbnail")
    if isinstance(thumb, dict) and thumb.get("static"):
        return thumb["static"]
    if isinstance(thumb, str) and thumb:
        return thumb
    return f"https://img.youtube.com/vi/{v.get('video_id')}/hqdefault.jpg"


def video_items(payload: Dict[str, Any], limit: int = MAX_RESULTS) -> List[Dict[str, Any]]:
    """SerpAPI youtube payload -> [{id, title, channel, thumb, duration}]."""
    items: List[Dict[str, Any]] = []
    for v in (payload.get("video_results") or [])[:limit]:
        channel = v.get("channel")
        items.append({
            "id": v.get("video_id"),
            "title": v.get("title"),
            "channel": (channel.get("name") or "") if isinstance(channel, dict) else "",
            "thumb": _thumb(v),
            "duration": v.get("length") or v.get("duration"),
        })
    return items


def search_videos(query: str, api_key: str, client: Optional[httpx.Client] = None) -> List[Dict[str, Any]]:
    params = {"engine": "youtube", "search_query": query, "api_key": api_key}
    owns_client = client is None
    client = client or httpx.Client(timeout=DEFAULT_TIMEOUT)
    try:
        r = client.get(SERPAPI_URL, params=params)
        if r.status_code >= 400:
            raise RuntimeError(f"SerpAPI failed {r.status_code}")
        return video_items(r.json())
    finally:
        if owns_client:
            client.close()


def fetch_transcript_text(video_id: str) -> str:
    """Joined caption text; empty when the video has no retrievable transcript."""
    try:
        fetched = YouTubeTranscriptApi().fetch(video_id)
    except Exception:
        log.info("No transcript for %s", video_id, exc_info=True)
        return ""
    return " ".join(snippet.text for snippet in fetched)
