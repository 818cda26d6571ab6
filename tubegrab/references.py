import re
import urllib.parse

_ID = r"[A-Za-z0-9_-]{11}"

VIDEO_ID_RE = re.compile(rf"^{_ID}$")
_WATCH_RE = re.compile(
    rf"^https?://(?:www\.|m\.|music\.)?youtube\.com/watch\?(?:[^#\s]*&)?v=({_ID})(?![A-Za-z0-9_-])[^\s]*$"
)
_SHORT_RE = re.compile(rf"^https?://youtu\.be/({_ID})(?:[?#][^\s]*)?$")
_EMBED_RE = re.compile(
    rf"^https?://(?:www\.)?youtube(?:-nocookie)?\.com/embed/({_ID})(?:[?#][^\s]*)?$"
)
_WATCH_HOST_RE = re.compile(r"^(?:www\.|m\.|music\.)?youtube\.com$")
_REFERENCE_PATTERNS = (VIDEO_ID_RE, _WATCH_RE, _SHORT_RE, _EMBED_RE)


def _match(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    for pattern in _REFERENCE_PATTERNS:
        match = pattern.match(value)
        if match:
            return match
    return None


def is_valid_reference(value):
    return _match(value) is not None


def extract_video_id(value):
    match = _match(value)
    if not match:
        return None
    return match.group(1) if match.groups() else match.group(0)


def normalize_reference(value):
    """Best-effort canonical URL. Anything unexpected comes back unchanged."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if VIDEO_ID_RE.match(stripped):
        return f"https://www.youtube.com/watch?v={stripped}"
    try:
        parsed = urllib.parse.urlparse(stripped)
        if parsed.scheme not in ("http", "https") or parsed.path != "/watch":
            return value
        host = parsed.netloc
        if not _WATCH_HOST_RE.match(host):
            return value
        qs = urllib.parse.parse_qs(parsed.query or "")
        vid = (qs.get("v") or [None])[0]
        if not vid or not VIDEO_ID_RE.match(vid):
            return value
        return f"https://{host}/watch?v={vid}"
    except Exception:
        return value
