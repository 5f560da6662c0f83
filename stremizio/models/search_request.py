"""
Search Request Model
Query + media type for one stream lookup, plus resolved title metadata
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..utils.text_utils import clean_title, extract_year


class MediaType(Enum):
    """Stremio content type"""
    MOVIE = "movie"
    SERIES = "series"

    @classmethod
    def parse(cls, value: str) -> "MediaType":
        """Raise ValueError for anything other than movie/series."""
        return cls(str(value or "").strip().lower())


@dataclass(frozen=True)
class SearchRequest:
    """Immutable lookup request, built once per incoming stream request"""
    raw_query: str
    media_type: MediaType

    @property
    def clean_query(self) -> str:
        return clean_title(self.raw_query)

    @property
    def year_hint(self) -> Optional[str]:
        return extract_year(self.raw_query)


@dataclass
class MediaMeta:
    """Title info resolved from an id (TMDB or raw fallback)"""
    title: str
    year: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None

    def to_query(self, media_type: MediaType) -> str:
        if media_type == MediaType.SERIES and self.season is not None and self.episode is not None:
            return f"{self.title} S{self.season:02d}E{self.episode:02d}"
        if media_type == MediaType.MOVIE and self.year:
            return f"{self.title} {self.year}"
        return self.title
