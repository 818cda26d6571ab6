from dataclasses import dataclass
from enum import Enum

MAX_SCORE = 1450

_PREMIUM_MARKER = "Premium"
_PREMIUM_POINTS = 300
_MAX_BITRATE_POINTS = 600
_BITRATE_DIVISOR = 5


class Codec(Enum):
    AV1 = ("AV1", 1.30, 100)
    VP9 = ("VP9", 1.00, 75)
    H264 = ("H.264", 0.80, 50)
    OTHER = ("Other", 0.60, 25)

    def __init__(self, label, multiplier, bonus):
        self.label = label
        self.multiplier = multiplier
        self.bonus = bonus


_CODEC_PREFIXES = (
    (("av01", "av1"), Codec.AV1),
    (("vp09", "vp9"), Codec.VP9),
    (("avc1", "h264"), Codec.H264),
)


@dataclass(frozen=True)
class ScoreBreakdown:
    premium_points: int
    resolution_points: int
    bitrate_points: int
    codec_points: int
    fps_points: int
    total: int
    codec_name: str
    codec_multiplier: float
    # unclamped sum, used for ordering above MAX_SCORE
    raw_total: int = 0


_AUDIO_ONLY = ScoreBreakdown(
    premium_points=0,
    resolution_points=0,
    bitrate_points=0,
    codec_points=0,
    fps_points=0,
    total=0,
    codec_name="none",
    codec_multiplier=0.0,
)


def classify_codec(vcodec):
    value = (vcodec or "").strip().lower()
    for prefixes, codec in _CODEC_PREFIXES:
        if value.startswith(prefixes):
            return codec
    return Codec.OTHER


def premium_points(note):
    return _PREMIUM_POINTS if _PREMIUM_MARKER in (note or "") else 0


def resolution_points(height):
    height = max(0, int(height or 0))
    if height >= 2160:
        return 600
    if height >= 1440:
        return 550
    if height >= 1080:
        # capped so that 1080p..1439p never outranks the 1440p bracket
        return min(550, 500 + (height - 1080) // 4)
    if height >= 720:
        return 400 + (height - 720) // 4
    if height >= 480:
        return 250 + (height - 480) // 3
    return height // 2


def bitrate_points(kbps, codec):
    if not kbps or kbps <= 0:
        return 0
    effective = kbps * codec.multiplier
    return int(min(_MAX_BITRATE_POINTS, effective / _BITRATE_DIVISOR))


def fps_points(fps):
    fps = fps or 0
    if fps >= 60:
        return 50
    if fps >= 50:
        return 40
    if fps >= 30:
        return 30
    return max(0, int(fps))


def score_stream(stream):
    """Score one StreamDescriptor. Audio-only rows always score zero."""
    if stream.is_audio_only:
        return _AUDIO_ONLY

    codec = classify_codec(stream.video_codec)
    premium = premium_points(stream.note)
    resolution = resolution_points(stream.height)
    bitrate = bitrate_points(stream.video_bitrate_kbps, codec)
    fps = fps_points(stream.fps)
    raw_total = round(premium + resolution + bitrate + codec.bonus + fps)
    total = max(0, min(MAX_SCORE, raw_total))

    return ScoreBreakdown(
        premium_points=premium,
        resolution_points=resolution,
        bitrate_points=bitrate,
        codec_points=codec.bonus,
        fps_points=fps,
        total=total,
        codec_name=codec.label,
        codec_multiplier=codec.multiplier,
        raw_total=raw_total,
    )


def rank_streams(streams):
    """Return ``(stream, breakdown, rank)`` tuples, best first.

    Ordering uses the unclamped sum so streams that all hit MAX_SCORE still
    rank by codec and bitrate. The sort is stable, so equal sums keep their
    catalog order.
    """
    scored = [(stream, score_stream(stream)) for stream in streams]
    scored.sort(key=lambda item: -item[1].raw_total)
    ranked = []
    for idx, (stream, breakdown) in enumerate(scored, start=1):
        ranked.append((stream, breakdown, idx))
    return ranked
