# ABOUTME: Finds YouTube video IDs in chat message text
# ABOUTME: Handles watch, short-link, embed, shorts and mobile URL forms

import re

# watch?v=, youtu.be/, embed/, shorts/ and m. / www. hosts; IDs are 11 URL-safe characters
YOUTUBE_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.|m\.)?(?:youtube\.com/(?:watch\?v=|embed/|shorts/)|youtu\.be/)([a-zA-Z0-9_-]{11})",
    re.IGNORECASE,
)
VIDEO_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")


def extract_video_ids(text: str) -> list[str]:
    """Return unique video IDs in order of first appearance."""
    seen: set[str] = set()
    video_ids: list[str] = []
    for match in YOUTUBE_URL_PATTERN.finditer(text or ""):
        video_id = match.group(1)
        if video_id not in seen:
            seen.add(video_id)
            video_ids.append(video_id)
    return video_ids


def contains_youtube_url(text: str) -> bool:
    return YOUTUBE_URL_PATTERN.search(text or "") is not None


def parse_video_reference(value: str) -> str | None:
    """Accept either a bare video ID or a URL and return the video ID."""
    value = value.strip()
    if VIDEO_ID_PATTERN.match(value):
        return value
    video_ids = extract_video_ids(value)
    return video_ids[0] if video_ids else None
