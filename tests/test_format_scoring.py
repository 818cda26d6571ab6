import unittest

from tubegrab.catalog import StreamDescriptor
from tubegrab.selection import auto_selection
from tubegrab.format_scoring import (
    MAX_SCORE,
    Codec,
    classify_codec,
    fps_points,
    rank_streams,
    resolution_points,
    score_stream,
)


def _video(format_id="1", *, codec="vp09.00.40.08", height=1080, vbr=1500.0, fps=30.0, note="1080p"):
    return StreamDescriptor(
        id=format_id,
        note=note,
        video_codec=codec,
        audio_codec="none",
        height=height,
        width=int(height * 16 / 9),
        video_bitrate_kbps=vbr,
        fps=fps,
    )


class FormatScoringTests(unittest.TestCase):
    def test_premium_vp9_worked_example(self):
        breakdown = score_stream(_video(codec="vp09.00.40.08", vbr=1656, fps=25, note="1080p Premium"))
        self.assertEqual(breakdown.premium_points, 300)
        self.assertEqual(breakdown.resolution_points, 500)
        self.assertEqual(breakdown.bitrate_points, 331)
        self.assertEqual(breakdown.codec_points, 75)
        self.assertEqual(breakdown.fps_points, 25)
        self.assertEqual(breakdown.total, 1231)
        self.assertEqual(breakdown.codec_name, "VP9")
        self.assertEqual(breakdown.codec_multiplier, 1.00)

    def test_premium_av1_worked_example(self):
        breakdown = score_stream(_video(codec="av01.0.08M.08", vbr=902, fps=25, note="1080p Premium"))
        self.assertEqual(breakdown.bitrate_points, 234)
        self.assertEqual(breakdown.codec_points, 100)
        self.assertEqual(breakdown.total, 1159)
        self.assertEqual(breakdown.codec_name, "AV1")

    def test_efficiency_multiplier_decides_close_calls(self):
        vp9_high = score_stream(_video(codec="vp9", vbr=1656, fps=25, note="1080p Premium"))
        av1_low = score_stream(_video(codec="av01.0.08M.08", vbr=902, fps=25, note="1080p Premium"))
        self.assertGreater(vp9_high.total, av1_low.total)

        av1_same = score_stream(_video(codec="av01.0.08M.08", vbr=1500))
        vp9_same = score_stream(_video(codec="vp9", vbr=1500))
        self.assertGreater(av1_same.bitrate_points, vp9_same.bitrate_points)
        self.assertGreater(av1_same.total, vp9_same.total)

    def test_codec_ordering_at_equal_bitrate(self):
        totals = [
            score_stream(_video(codec=codec, height=720, vbr=800, fps=30)).total
            for codec in ("av01.0.05M.08", "vp09.00.31.08", "avc1.64001F", "hev1.1.6.L93")
        ]
        self.assertEqual(totals, sorted(totals, reverse=True))
        self.assertEqual(len(set(totals)), 4)

    def test_codec_ordering_survives_the_cap(self):
        codecs = ("avc1.640032", "vp09.00.41.08", "av01.0.09M.08", "hev1.1.6.L123")
        streams = [
            _video(f"s{idx}", codec=codec, vbr=5000, fps=60, note="1080p60 Premium")
            for idx, codec in enumerate(codecs)
        ]
        breakdowns = [score_stream(stream) for stream in streams]
        self.assertEqual([b.total for b in breakdowns], [MAX_SCORE] * 4)
        self.assertEqual([b.raw_total for b in breakdowns], [1500, 1525, 1550, 1475])

        ranked = rank_streams(streams)
        self.assertEqual([item[1].codec_name for item in ranked], ["AV1", "VP9", "H.264", "Other"])
        self.assertEqual(auto_selection(ranked), "s2+bestaudio")

    def test_classify_codec(self):
        self.assertIs(classify_codec("av01.0.08M.08"), Codec.AV1)
        self.assertIs(classify_codec("VP9"), Codec.VP9)
        self.assertIs(classify_codec("vp09.00.40.08"), Codec.VP9)
        self.assertIs(classify_codec("avc1.640028"), Codec.H264)
        self.assertIs(classify_codec("h264"), Codec.H264)
        self.assertIs(classify_codec("hev1"), Codec.OTHER)
        self.assertIs(classify_codec(None), Codec.OTHER)

    def test_audio_only_scores_zero(self):
        audio = StreamDescriptor(id="251", note="medium, Premium", audio_codec="opus", audio_bitrate_kbps=130)
        self.assertTrue(audio.is_audio_only)
        breakdown = score_stream(audio)
        self.assertEqual(breakdown.total, 0)
        self.assertEqual(breakdown.premium_points, 0)

    def test_resolution_points_never_decrease(self):
        previous = -1
        for height in range(0, 4400):
            points = resolution_points(height)
            self.assertGreaterEqual(points, previous, f"height {height}")
            previous = points
        self.assertEqual(resolution_points(2160), 600)
        self.assertEqual(resolution_points(1440), 550)
        self.assertEqual(resolution_points(720), 400)
        self.assertEqual(resolution_points(480), 250)
        self.assertEqual(resolution_points(360), 180)

    def test_fps_points(self):
        self.assertEqual(fps_points(60), 50)
        self.assertEqual(fps_points(50), 40)
        self.assertEqual(fps_points(30), 30)
        self.assertEqual(fps_points(25), 25)
        self.assertEqual(fps_points(None), 0)
        previous = -1
        for fps in range(0, 121):
            self.assertGreaterEqual(fps_points(fps), previous)
            previous = fps_points(fps)

    def test_total_stays_in_range(self):
        for codec in ("av01", "vp9", "avc1", "other"):
            for height in (0, 144, 480, 1080, 1439, 2160, 4320):
                for vbr in (0, 100, 5000, 50000):
                    for fps in (0, 24, 60, 120):
                        for note in ("", "Premium"):
                            total = score_stream(_video(codec=codec, height=height, vbr=vbr, fps=fps, note=note)).total
                            self.assertGreaterEqual(total, 0)
                            self.assertLessEqual(total, MAX_SCORE)

    def test_rank_streams_is_stable_on_ties(self):
        first = _video("first", codec="avc1", height=720, vbr=1000)
        second = _video("second", codec="avc1", height=720, vbr=1000)
        best = _video("best", codec="vp9", height=1080, vbr=2000)
        audio = StreamDescriptor(id="140", audio_codec="mp4a.40.2")
        ranked = rank_streams([first, audio, second, best])
        self.assertEqual([item[0].id for item in ranked], ["best", "first", "second", "140"])
        self.assertEqual([item[2] for item in ranked], [1, 2, 3, 4])


if __name__ == "__main__":
    unittest.main()
