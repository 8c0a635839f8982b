"""Tests for StreamRanker and quality_score."""

from __future__ import annotations

import pytest

from catalogarr.domain.entities.media import ExtractedAttributes, StreamCandidate
from catalogarr.infrastructure.stremio.stream_ranker import StreamRanker, quality_score


def _candidate(
    url: str,
    *,
    resolution: str | None = None,
    quality: str | None = None,
    addon_id: str = "a",
) -> StreamCandidate:
    return StreamCandidate(
        addon_id=addon_id,
        addon_name="A",
        playback_url=url,
        quality=quality,
        attributes=ExtractedAttributes(resolution=resolution),
    )


class TestQualityScore:
    @pytest.mark.parametrize(
        ("resolution", "quality", "expected"),
        [
            ("1080p", None, 1080),
            ("2160p", "720p", 2160),
            (None, "WEB 720p", 720),
            (None, "4K HDR", 2160),
            (None, "HD", 720),
            (None, "SD", 480),
            (None, "CAM", 0),
            (None, None, 0),
        ],
    )
    def test_score(
        self, resolution: str | None, quality: str | None, expected: int
    ) -> None:
        assert quality_score(resolution, quality) == expected


class TestStreamRanker:
    def test_higher_resolution_first(self) -> None:
        ranked = StreamRanker().sort(
            [
                _candidate("u720", resolution="720p"),
                _candidate("u1080", resolution="1080p"),
            ]
        )
        assert [c.playback_url for c in ranked] == ["u1080", "u720"]
        assert [c.rank_score for c in ranked] == [1080, 720]

    def test_stable_for_equal_scores(self) -> None:
        ranked = StreamRanker().sort(
            [
                _candidate("first", resolution="1080p"),
                _candidate("low", resolution="480p"),
                _candidate("second", resolution="1080p"),
            ]
        )
        assert [c.playback_url for c in ranked] == ["first", "second", "low"]

    def test_duplicate_target_keeps_best_ranked(self) -> None:
        ranked = StreamRanker().sort(
            [
                _candidate("same", addon_id="plain"),
                _candidate("other", resolution="720p"),
                _candidate("same", resolution="1080p", addon_id="detailed"),
            ]
        )
        assert [(c.addon_id, c.rank_score) for c in ranked] == [
            ("detailed", 1080),
            ("a", 720),
        ]

    def test_duplicate_target_equal_score_keeps_first(self) -> None:
        ranked = StreamRanker().sort(
            [
                _candidate("same", resolution="720p", addon_id="first"),
                _candidate("same", resolution="720p", addon_id="second"),
            ]
        )
        assert [c.addon_id for c in ranked] == ["first"]

    def test_quality_fallback_used(self) -> None:
        ranked = StreamRanker().sort(
            [_candidate("sd", quality="SD"), _candidate("hd", quality="HD")]
        )
        assert [c.playback_url for c in ranked] == ["hd", "sd"]
