"""
Text Utilities
Title cleanup, infohash extraction, quality/language detection and magnet building
"""
from typing import List, Optional
from urllib.parse import quote
import re


DEFAULT_TRACKERS = [
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.tracker.cl:1337/announce",
    "udp://9.rarbg.com:2810/announce",
    "udp://tracker.openbittorrent.com:80/announce",
    "udp://opentracker.i2p.rocks:6969/announce",
    "udp://tracker.torrent.eu.org:451/announce",
]

QUALITY_4K = "4K"
QUALITY_1080P = "1080p"
QUALITY_720P = "720p"
QUALITY_480P = "480p"
QUALITY_SD = "SD"

# First matching rule wins.
QUALITY_RULES = [
    (QUALITY_4K, ("2160p", "4k", "uhd")),
    (QUALITY_1080P, ("1080p",)),
    (QUALITY_720P, ("720p",)),
    (QUALITY_480P, ("480p", "sd")),
]

# Italian audio/subs markers plus release groups that only publish localized rips.
LOCALIZED_RE = re.compile(
    r"\b(ITA|ITALIAN|ITALIANO|MULTI|DUAL|MD|SUB[\s._-]?ITA|FORCED|AC3[\s._-]?ITA|DTS[\s._-]?ITA"
    r"|CINEFILE|NOVARIP|MEM|ROBBYRS|IDN_CREW|PSO|BADASS)\b",
    re.IGNORECASE,
)

_INFOHASH_RE = re.compile(r"btih:([a-f0-9]{40}|[a-z2-7]{32})(?![a-z0-9])", re.IGNORECASE)
_SIZE_RE = re.compile(r"([\d.,]+)\s*([TGMK])?i?B", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_EPISODE_MARKER_RE = re.compile(r"S(\d{1,2})E\d{1,2}", re.IGNORECASE)

_SIZE_MULTIPLIERS = {
    "B": 1,
    "K": 1024,
    "M": 1024 ** 2,
    "G": 1024 ** 3,
    "T": 1024 ** 4,
}


def clean_title(raw: Optional[str]) -> str:
    """Strip quotes and odd symbols from a release title, collapse whitespace."""
    if not raw:
        return ""
    text = re.sub(r"[:\"'’]", "", raw)
    text = re.sub(r"[^a-zA-Z0-9\s\-.\[\]]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def extract_content_hash(magnet: Optional[str]) -> Optional[str]:
    """
    Extract the btih infohash from a magnet link.

    Accepts 40-char hex and 32-char base32 hashes, returned uppercase.
    Tracker and display-name parameters never affect the result.
    """
    if not magnet:
        return None
    match = _INFOHASH_RE.search(magnet)
    if not match:
        return None
    return match.group(1).upper()


def classify_quality(title: Optional[str]) -> str:
    """Map a release title to one of 4K, 1080p, 720p, 480p, SD."""
    low = (title or "").lower()
    for quality, needles in QUALITY_RULES:
        if any(needle in low for needle in needles):
            return quality
    return QUALITY_SD


def is_localized(title: Optional[str]) -> bool:
    """True when the title carries an Italian/multi-audio marker."""
    return bool(LOCALIZED_RE.search(title or ""))


def parse_size(size_text: Optional[str]) -> int:
    """
    Parse a human size string to bytes.
    Handles: "1.5 GB", "700,5 MiB", "123 B"; binary multipliers throughout.
    """
    if not size_text:
        return 0
    match = _SIZE_RE.search(size_text)
    if not match:
        return 0
    number = _LEADING_NUMBER_RE.match(match.group(1).replace(",", ".", 1))
    if not number:
        return 0
    value = float(number.group(0))
    unit = (match.group(2) or "B").upper()
    return int(round(value * _SIZE_MULTIPLIERS[unit]))


def format_size(num_bytes: int) -> str:
    return f"{max(0, int(num_bytes)) / 1024 ** 3:.2f} GB"


def synthesize_magnet(content_hash: str, display_name: str, trackers: Optional[List[str]] = None) -> str:
    """Build a magnet URI with one tr= parameter per tracker, in order."""
    if trackers is None:
        trackers = DEFAULT_TRACKERS
    tr = "".join(f"&tr={quote(t, safe='')}" for t in trackers)
    return f"magnet:?xt=urn:btih:{content_hash}&dn={quote(display_name or '', safe='')}{tr}"


def extract_year(text: Optional[str]) -> Optional[str]:
    match = _YEAR_RE.search(text or "")
    return match.group(0) if match else None


def season_query(query: str) -> str:
    """Rewrite "Show S02E05" as "Show Stagione 2" for season-indexed sites."""
    return _EPISODE_MARKER_RE.sub(lambda m: f"Stagione {int(m.group(1))}", query or "", count=1).strip()
