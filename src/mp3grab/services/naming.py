"""Fingerprints, artifact filenames, and source URL parsing."""

from __future__ import annotations

import re
import time
import unicodedata
from urllib.parse import parse_qs, urlsplit

PLACEHOLDER_TITLE = "audio"
LOCAL_TOOL_PREFIX = "video"
AUDIO_EXTENSION = ".mp3"

_MAX_TITLE_CHARS = 80
_SUPPORTED_DOMAINS = ("youtube.com", "youtu.be", "youtube-nocookie.com")
_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{6,32}$")
_PATH_ID_RE = re.compile(r"^/(?:embed|v|shorts|live)/([^/?#&]+)")
_UNSAFE_CHARS_RE = re.compile(r"[^\w\s-]", re.UNICODE)
_WHITESPACE_RE = re.compile(r"[\s_]+")


def make_fingerprint(now: float | None = None) -> str:
    """Return a millisecond timestamp token for naming artifacts."""
    seconds = time.time() if now is None else now
    return str(int(seconds * 1000))


def sanitize_title(title: str | None, placeholder: str = PLACEHOLDER_TITLE) -> str:
    """Reduce a display title to a filename-safe token.

    Characters other than letters, digits, ``-`` and whitespace are dropped,
    and whitespace runs collapse to a single ``_``. Never returns an empty
    string.

    Args:
        title: Raw title as reported by a strategy or the caller.
        placeholder: Token returned when nothing usable remains.

    Returns:
        Sanitized title, e.g. ``"My Song!! (Live) / 2024"`` -> ``"My_Song_Live_2024"``.
    """
    text = unicodedata.normalize("NFKC", title or "")
    text = _UNSAFE_CHARS_RE.sub("", text)
    text = _WHITESPACE_RE.sub("_", text.strip())
    text = text[:_MAX_TITLE_CHARS].strip("_-")
    return text or placeholder


def local_tool_stem(fingerprint: str) -> str:
    """Return the filename prefix shared by every file of one yt-dlp job."""
    return f"{LOCAL_TOOL_PREFIX}-{fingerprint}"


def title_from_filename(filename: str, fingerprint: str) -> str:
    """Recover the title segment embedded in a yt-dlp output filename.

    ``video-<fp>.My_Song.mp3`` yields ``"My Song"``; a filename with no
    title segment yields ``"video"``.
    """
    stem = filename
    if stem.lower().endswith(AUDIO_EXTENSION):
        stem = stem[: -len(AUDIO_EXTENSION)]
    prefix = local_tool_stem(fingerprint)
    if stem.startswith(prefix):
        stem = stem[len(prefix):]
    segment = stem.lstrip(".").replace("_", " ").strip()
    return segment or LOCAL_TOOL_PREFIX


def stream_artifact_name(title: str | None, fingerprint: str) -> str:
    """Filename for a transcoded pre-extracted stream."""
    return f"{sanitize_title(title)}-{fingerprint}{AUDIO_EXTENSION}"


def remote_artifact_name(fingerprint: str) -> str:
    """Filename for an artifact fetched from the remote conversion API."""
    return f"remote-{fingerprint}{AUDIO_EXTENSION}"


def _host(url: str) -> str:
    if "://" not in url:
        url = f"https://{url}"
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def is_supported_url(url: str | None) -> bool:
    """Check whether ``url`` points at a supported video-sharing domain."""
    if not url:
        return False
    host = _host(url.strip())
    return any(host == d or host.endswith(f".{d}") for d in _SUPPORTED_DOMAINS)


def is_valid_video_id(video_id: str | None) -> bool:
    return bool(video_id) and _VIDEO_ID_RE.match(video_id) is not None


def extract_video_id(url: str | None) -> str | None:
    """Pull the video id out of a watch, short-link, embed or shorts URL."""
    if url is None or not is_supported_url(url):
        return None
    raw = url.strip()
    if "://" not in raw:
        raw = f"https://{raw}"
    parts = urlsplit(raw)
    host = (parts.hostname or "").lower()

    candidate: str | None = None
    if host == "youtu.be" or host.endswith(".youtu.be"):
        candidate = parts.path.lstrip("/").split("/")[0] or None
    elif parts.path == "/watch":
        candidate = (parse_qs(parts.query).get("v") or [None])[0]
    else:
        match = _PATH_ID_RE.match(parts.path)
        if match:
            candidate = match.group(1)

    return candidate if is_valid_video_id(candidate) else None
