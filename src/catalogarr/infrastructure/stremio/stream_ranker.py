"""Stream ranking by quality score.

Score: numeric part of the extracted resolution ("1080p" -> 1080); if no
resolution was recognised, the addon's coarse ``quality`` label is used
(1080/720/480 substrings, then HD -> 720, SD -> 480).  Unknown is 0.
"""

from __future__ import annotations

import re
from dataclasses import replace

from catalogarr.domain.entities.media import StreamCandidate

_DIGITS_RE = re.compile(r"\d+")

_QUALITY_SUBSTRINGS: tuple[tuple[str, int], ...] = (
    ("2160", 2160),
    ("4K", 2160),
    ("1080", 1080),
    ("720", 720),
    ("480", 480),
)

_QUALITY_LABELS: dict[str, int] = {
    "UHD": 2160,
    "FHD": 1080,
    "HD": 720,
    "SD": 480,
}


def quality_score(resolution: str | None, quality: str | None) -> int:
    """Numeric quality used for ordering (higher = better)."""
    if resolution:
        m = _DIGITS_RE.search(resolution)
        if m:
            return int(m.group(0))
    if quality:
        upper = quality.upper()
        for needle, score in _QUALITY_SUBSTRINGS:
            if needle in upper:
                return score
        for label, score in _QUALITY_LABELS.items():
            if re.search(rf"\b{label}\b", upper):
                return score
    return 0


class StreamRanker:
    """Scores candidates and sorts them, best first.

    The sort is stable: equal scores keep the order the addons returned
    them in.  Of several entries pointing at the same URL only the
    best-ranked one is kept.
    """

    def score(self, candidate: StreamCandidate) -> int:
        return quality_score(candidate.attributes.resolution, candidate.quality)

    def sort(self, candidates: list[StreamCandidate]) -> list[StreamCandidate]:
        """Return a new list with ``rank_score`` set, descending."""
        scored = [replace(c, rank_score=self.score(c)) for c in candidates]
        scored.sort(key=lambda c: c.rank_score, reverse=True)

        seen: set[str] = set()
        ranked: list[StreamCandidate] = []
        for candidate in scored:
            if candidate.target_url in seen:
                continue
            seen.add(candidate.target_url)
            ranked.append(candidate)
        return ranked
