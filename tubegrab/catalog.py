import logging
import re
from dataclasses import dataclass

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from tubegrab.errors import CatalogUnavailable
from tubegrab.references import extract_video_id

_YEAR_RE = re.compile(r"^(\d{4})")
_NON_STREAM_EXTS = {"mhtml"}


@dataclass(frozen=True)
class StreamDescriptor:
    id: str
    note: str = ""
    video_codec: str = "none"
    audio_codec: str = "none"
    height: int = 0
    width: int = 0
    video_bitrate_kbps: float = 0.0
    audio_bitrate_kbps: float = 0.0
    fps: float = 0.0
    extension: str = ""

    @property
    def is_audio_only(self):
        return self.video_codec == "none" and self.audio_codec != "none"


@dataclass(frozen=True)
class VideoInfo:
    video_id: str | None
    title: str | None
    release_year: str | None
    streams: tuple = ()


def _as_int(value):
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _as_float(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def _as_codec(value):
    if not value or not isinstance(value, str):
        return "none"
    return value.strip() or "none"


def decode_stream(raw):
    """Turn one yt-dlp format dict into a StreamDescriptor, or None for non-stream rows."""
    if not isinstance(raw, dict):
        return None
    format_id = raw.get("format_id")
    if format_id is None or str(format_id).strip() == "":
        return None
    note = str(raw.get("format_note") or "")
    ext = str(raw.get("ext") or "")
    if ext in _NON_STREAM_EXTS or "storyboard" in note.lower():
        return None

    video_codec = _as_codec(raw.get("vcodec"))
    audio_codec = _as_codec(raw.get("acodec"))
    if video_codec == "none" and audio_codec == "none":
        return None

    video_bitrate = _as_float(raw.get("vbr"))
    if not video_bitrate and video_codec != "none" and audio_codec == "none":
        # video-only rows: total bitrate is the video bitrate
        video_bitrate = _as_float(raw.get("tbr"))

    return StreamDescriptor(
        id=str(format_id),
        note=note,
        video_codec=video_codec,
        audio_codec=audio_codec,
        height=_as_int(raw.get("height")),
        width=_as_int(raw.get("width")),
        video_bitrate_kbps=video_bitrate,
        audio_bitrate_kbps=_as_float(raw.get("abr")),
        fps=_as_float(raw.get("fps")),
        extension=ext,
    )


def decode_streams(formats):
    streams = []
    for raw in formats or []:
        stream = decode_stream(raw)
        if stream is not None:
            streams.append(stream)
    return tuple(streams)


def extract_release_year(info):
    if not info:
        return None
    for key in ("release_date", "upload_date", "release_year"):
        value = info.get(key)
        if not value:
            continue
        match = _YEAR_RE.match(str(value)[:4])
        if match:
            return match.group(1)
    return None


def auth_opts(settings, js_runtime=None):
    """Cookie and JS runtime options shared by the metadata pass and the download."""
    opts = {}
    cookies = cookies_from_browser(settings)
    if cookies:
        opts["cookiesfrombrowser"] = cookies
    if js_runtime:
        runtime_name, runtime_path = js_runtime.split(":", 1)
        opts["js_runtimes"] = {runtime_name: {"path": runtime_path}}
        opts["remote_components"] = ["ejs:github"]
    return opts


def build_metadata_opts(settings, js_runtime=None):
    opts = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "noplaylist": True,
        "logger": logging.getLogger("yt_dlp"),
    }
    opts.update(auth_opts(settings, js_runtime))
    return opts


def cookies_from_browser(settings):
    if not settings.browser:
        return None
    return (settings.browser, settings.profile or None, None, settings.container or None)


def fetch_video_info(url, settings, *, js_runtime=None):
    """Metadata-only yt-dlp pass: the stream catalog plus title and release year."""
    opts = build_metadata_opts(settings, js_runtime)
    try:
        with YoutubeDL(opts) as ydl:
            info = ydl.extract_info(url, download=False)
    except DownloadError as exc:
        raise CatalogUnavailable(f"Metadata fetch failed for {url}: {exc}") from exc
    except Exception as exc:
        logging.debug("yt-dlp metadata extraction raised", exc_info=True)
        raise CatalogUnavailable(f"Metadata fetch failed for {url}: {exc}") from exc

    if not isinstance(info, dict):
        raise CatalogUnavailable(f"yt-dlp returned no metadata for {url}")

    return VideoInfo(
        video_id=info.get("id") or extract_video_id(url),
        title=info.get("title"),
        release_year=extract_release_year(info),
        streams=decode_streams(info.get("formats")),
    )


def _format_bitrate(value):
    return f"{value:.0f}k" if value else "-"


def format_catalog(ranked, selected_id=None):
    """Plain-text table of ranked streams, best first, with their scores."""
    header = f"{'ID':<8} {'RES':>9} {'FPS':>4} {'CODEC':<6} {'VBR':>7} {'ABR':>6} {'SCORE':>5}  NOTE"
    lines = [header, "-" * len(header)]
    for stream, breakdown, _rank in ranked:
        if stream.is_audio_only:
            resolution = "audio"
            codec = stream.audio_codec.split(".")[0]
        else:
            resolution = f"{stream.width}x{stream.height}" if stream.width else f"{stream.height}p"
            codec = breakdown.codec_name
        marker = "  <= best" if stream.id == selected_id else ""
        lines.append(
            f"{stream.id:<8} {resolution:>9} {stream.fps or 0:>4.0f} {codec:<6} "
            f"{_format_bitrate(stream.video_bitrate_kbps):>7} {_format_bitrate(stream.audio_bitrate_kbps):>6} "
            f"{breakdown.total:>5}  {stream.note}{marker}"
        )
    return "\n".join(lines)
