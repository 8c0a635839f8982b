"""Rule-based extraction of technical attributes from stream free text.

Addons describe streams in unstructured ``name``/``title``/``description``
fields.  The fields are combined into one text with an internal segment
separator (priority order: filename, description, title, name) and each
attribute family is matched against ordered rule tables:

    for segment in segments:        # earlier fields win
        for pattern, value in rules:  # earlier rules win
            if pattern matches: return value

Everything here is pure: same input, same output, never raises.
"""

from __future__ import annotations

import re
from dataclasses import replace

from guessit import guessit

from catalogarr.domain.entities.media import AddonStream, ExtractedAttributes
from catalogarr.infrastructure.common.parsers import format_size, parse_size_to_bytes

SEGMENT_SEPARATOR = "\x1f"

Rule = tuple[re.Pattern[str], str]


def _rules(*pairs: tuple[str, str]) -> tuple[Rule, ...]:
    return tuple((re.compile(p, re.IGNORECASE), v) for p, v in pairs)


# --- Rule tables (ordered: first match wins) ---

RESOLUTION_RULES = _rules(
    (r"\b(?:2160p|4k|uhd)\b", "2160p"),
    (r"\b1440p\b", "1440p"),
    (r"\b1080[pi]\b|\bfull[ .-]?hd\b|\bfhd\b", "1080p"),
    (r"\b720p\b", "720p"),
    (r"\b576p\b", "576p"),
    (r"\b480p\b", "480p"),
    (r"\b360p\b", "360p"),
)

SOURCE_RULES = _rules(
    (r"\bremux\b", "REMUX"),
    (r"\bblu-?ray\b|\bbd-?rip\b|\bbr-?rip\b", "BluRay"),
    (r"\bweb-?dl\b", "WEB-DL"),
    (r"\bweb-?rip\b", "WEBRip"),
    (r"\bhdtv\b", "HDTV"),
    (r"\bdvd-?rip\b|\bdvd\b", "DVDRip"),
    (r"\bhd-?rip\b", "HDRip"),
    (r"\b(?:hd)?cam(?:-?rip)?\b", "CAM"),
    (r"\btelesync\b|\bhd-?ts\b", "TS"),
    (r"\bweb\b", "WEB"),
)

CODEC_RULES = _rules(
    (r"\b[xh][ .]?265\b|\bhevc\b", "HEVC"),
    (r"\bav1\b", "AV1"),
    (r"\bvp9\b", "VP9"),
    (r"\b[xh][ .]?264\b|\bavc\b", "AVC"),
    (r"\bxvid\b|\bdivx\b", "XviD"),
)

AUDIO_RULES = _rules(
    (r"\batmos\b", "Atmos"),
    (r"\btrue-?hd\b", "TrueHD"),
    (r"\bdts[ .-]?hd(?:[ .-]?ma)?\b", "DTS-HD MA"),
    (r"\bdts[ .:-]?x\b", "DTS:X"),
    (r"\bdts\b", "DTS"),
    (r"\bddp|\bdd\+|\be-?ac-?3\b|\bdolby digital plus\b", "DD+"),
    (r"\bdd[ .]?[257]\.[01]\b|\bac-?3\b|\bdolby digital\b", "DD"),
    (r"\baac\b", "AAC"),
    (r"\bflac\b", "FLAC"),
    (r"\bopus\b", "Opus"),
    (r"\bmp3\b", "MP3"),
)

LANGUAGE_RULES = _rules(
    (r"\bmulti\b", "Multi"),
    (r"\bdual[ .-]?audio\b", "Dual Audio"),
    (r"\benglish\b|\beng\b|🇬🇧|🇺🇸", "English"),
    (r"\bgerman\b|\bdeutsch\b|\bger\b|🇩🇪", "German"),
    (r"\bfrench\b|\btruefrench\b|\bvff\b|\bfre\b|🇫🇷", "French"),
    (r"\bspanish\b|\blatino\b|\besp\b|🇪🇸|🇲🇽", "Spanish"),
    (r"\bitalian\b|\bita\b|🇮🇹", "Italian"),
    (r"\bportuguese\b|\bpor\b|🇵🇹|🇧🇷", "Portuguese"),
    (r"\brussian\b|\brus\b|🇷🇺", "Russian"),
    (r"\bhindi\b|🇮🇳", "Hindi"),
    (r"\bjapanese\b|\bjpn\b|🇯🇵", "Japanese"),
    (r"\bkorean\b|\bkor\b|🇰🇷", "Korean"),
)

DOLBY_VISION_RULES = _rules(
    (r"\bdolby[ .-]?vision\b|\bdovi\b|\bdv\b", "dolby_vision"),
)

HDR_RULES = _rules(
    (r"\bhdr10(?:\+|plus)?|\bhdr\b|\bhlg\b", "hdr"),
)

BIT_DEPTH_RULES = _rules(
    (r"\b10[ .-]?bits?\b|\bhi10p?\b", "10bit"),
)

RELEASE_GROUP_RULES = _rules(
    (
        r"-([a-z0-9][a-z0-9_]{1,24})(?:\[[^\]]*\])?"
        r"(?:\.(?:mkv|mp4|avi|m4v|ts|webm|mov))?\s*$",
        "",
    ),
)

# (short codes, full-name regex, canonical name)
_CACHE_SERVICES: tuple[tuple[str, str, str], ...] = (
    ("RD", r"real[ -]?debrid", "Real-Debrid"),
    ("AD", r"all[ -]?debrid", "AllDebrid"),
    ("PM", r"premiumize", "Premiumize"),
    ("DL|DLS", r"debrid[ -]?link", "Debrid-Link"),
    ("TB|TRB", r"torbox", "TorBox"),
    ("OC", r"offcloud", "Offcloud"),
    ("PKP|PP", r"pikpak", "PikPak"),
    ("ED", r"easy[ -]?debrid", "EasyDebrid"),
)

CACHE_RULES = _rules(
    *(
        (
            rf"\[(?:{codes})\+\]"
            rf"|(?<![a-z0-9])(?:{codes})\+"
            rf"|⚡\s*\[?(?:{codes})\b"
            rf"|\bcached\s+(?:on|in|at|with|by)\s+{full}\b",
            canonical,
        )
        for codes, full, canonical in _CACHE_SERVICES
    )
)

_SIZE_TOKEN_RE = re.compile(r"\b\d+(?:[.,]\d+)?\s*[KMGT]i?B\b", re.IGNORECASE)

# Words that look like a release group but describe the content instead.
# fmt: off
_NOT_RELEASE_GROUPS = frozenset(
    {
        "english", "eng", "german", "ger", "deutsch", "french", "fre",
        "spanish", "esp", "latino", "italian", "ita", "portuguese", "por",
        "russian", "rus", "hindi", "japanese", "jpn", "korean", "kor",
        "multi", "dual", "dubbed", "subbed", "sub", "subs", "dub", "vostfr",
        "dl", "rip", "hd", "sd", "web", "dts", "ma", "hdr", "dv", "audio",
    }
)
# fmt: on

_NUMERIC_TOKEN_RE = re.compile(r"\d+p?", re.IGNORECASE)

# A line must carry a technical marker before its "-SUFFIX" counts as a group.
_RELEASE_MARKER_RE = re.compile(
    r"\b(?:\d{3,4}p|[xh]\.?26[45]|hevc|web-?dl|blu-?ray|(?:19|20)\d\d)\b",
    re.IGNORECASE,
)


# --- Helpers ---


def combine_fields(
    filename: str | None = None,
    description: str | None = None,
    title: str | None = None,
    name: str | None = None,
) -> str:
    """Join the non-empty fields in priority order."""
    fields = (filename, description, title, name)
    parts = [f.strip() for f in fields if f and f.strip()]
    return SEGMENT_SEPARATOR.join(parts)


def _segments(text: str) -> list[str]:
    return [s for s in text.split(SEGMENT_SEPARATOR) if s]


def _first_match(segments: list[str], rules: tuple[Rule, ...]) -> str | None:
    for segment in segments:
        for pattern, value in rules:
            if pattern.search(segment):
                return value
    return None


def _looks_like_release_name(segment: str) -> bool:
    return " " not in segment.strip() and segment.count(".") >= 2


def _looks_like_release_line(line: str) -> bool:
    return _RELEASE_MARKER_RE.search(line) is not None


def _accept_release_group(group: object, addon_name: str | None) -> str | None:
    if not isinstance(group, str) or not group.strip():
        return None
    lowered = group.strip().lower()
    if addon_name and lowered == addon_name.strip().lower():
        return None
    if lowered in _NOT_RELEASE_GROUPS or _NUMERIC_TOKEN_RE.fullmatch(lowered):
        return None
    return group.strip()


def _release_group(segments: list[str], addon_name: str | None) -> str | None:
    for segment in segments:
        for line in segment.splitlines():
            line = line.strip()
            if not _looks_like_release_line(line):
                continue
            for pattern, _ in RELEASE_GROUP_RULES:
                m = pattern.search(line)
                if m:
                    group = _accept_release_group(m.group(1), addon_name)
                    if group:
                        return group

    if segments and _looks_like_release_name(segments[0]):
        try:
            guess = guessit(segments[0])
        except Exception:  # guessit raises on pathological input
            return None
        return _accept_release_group(guess.get("release_group"), addon_name)
    return None


def _size(segments: list[str], video_size: int | None) -> str | None:
    if video_size is not None and video_size > 0:
        return format_size(video_size)
    for segment in segments:
        m = _SIZE_TOKEN_RE.search(segment)
        if m:
            num_bytes = parse_size_to_bytes(m.group(0))
            if num_bytes > 0:
                return format_size(num_bytes)
    return None


# --- Public API ---


def extract(
    combined_text: str,
    *,
    addon_name: str | None = None,
    video_size: int | None = None,
) -> ExtractedAttributes:
    """Extract technical attributes from combined stream text."""
    segments = _segments(combined_text or "")

    dolby_vision = _first_match(segments, DOLBY_VISION_RULES) is not None
    hdr = dolby_vision or _first_match(segments, HDR_RULES) is not None

    return ExtractedAttributes(
        resolution=_first_match(segments, RESOLUTION_RULES),
        source=_first_match(segments, SOURCE_RULES),
        codec=_first_match(segments, CODEC_RULES),
        audio=_first_match(segments, AUDIO_RULES),
        language=_first_match(segments, LANGUAGE_RULES),
        hdr=hdr,
        dolby_vision=dolby_vision,
        bit_depth_10=_first_match(segments, BIT_DEPTH_RULES) is not None,
        release_group=_release_group(segments, addon_name),
        cache_provider=_first_match(segments, CACHE_RULES),
        size=_size(segments, video_size),
    )


def extract_for_stream(stream: AddonStream, addon_name: str) -> ExtractedAttributes:
    """Run the extractor over an addon stream's text fields."""
    text = combine_fields(
        stream.filename, stream.description, stream.title, stream.name
    )
    attributes = extract(text, addon_name=addon_name, video_size=stream.video_size)
    if attributes.resolution is None and stream.resolution:
        match = _first_match([stream.resolution], RESOLUTION_RULES)
        attributes = replace(attributes, resolution=match or stream.resolution)
    return attributes
