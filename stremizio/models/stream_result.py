"""
Stream Result Models
Per-source candidates and the deduplicated, scored items built from them
"""
from dataclasses import dataclass
from typing import Any, Dict

from ..utils.text_utils import classify_quality, clean_title, is_localized

FLAG_ITA = "\U0001F1EE\U0001F1F9"
FLAG_ENG = "\U0001F1EC\U0001F1E7"


@dataclass
class Candidate:
    """Raw listing from one source, before hashing and dedupe"""
    provider_name: str
    display_title: str
    magnet_or_detail_ref: str
    size_text: str = ""
    seeder_count: int = 0

    def __post_init__(self):
        self.seeder_count = max(0, int(self.seeder_count or 0))


@dataclass
class ResolvedItem:
    """Hash-identified listing; content_hash is the dedupe key"""
    provider_name: str
    title: str
    magnet_uri: str
    size_text: str
    seeder_count: int
    content_hash: str
    score: int = 0
    discovery_index: int = 0

    @classmethod
    def from_candidate(cls, candidate: Candidate, content_hash: str, discovery_index: int) -> "ResolvedItem":
        return cls(
            provider_name=candidate.provider_name,
            title=candidate.display_title,
            magnet_uri=candidate.magnet_or_detail_ref,
            size_text=candidate.size_text,
            seeder_count=candidate.seeder_count,
            content_hash=content_hash,
            discovery_index=discovery_index,
        )

    @property
    def quality(self) -> str:
        return classify_quality(self.title)

    def is_localized(self, trusted_provider: str = "") -> bool:
        return is_localized(self.title) or (bool(trusted_provider) and self.provider_name == trusted_provider)

    def to_stream(self, trusted_provider: str = "", binge_namespace: str = "stremizio") -> Dict[str, Any]:
        """Project to the Stremio stream object."""
        quality = self.quality
        flag = FLAG_ITA if self.is_localized(trusted_provider) else FLAG_ENG
        return {
            "name": f"{flag} {quality} [{self.provider_name}]",
            "title": f"{clean_title(self.title)}\n{self.size_text} | {self.seeder_count} seeds",
            "infoHash": self.content_hash,
            "behaviorHints": {"bingeGroup": f"{binge_namespace}-{quality}"},
        }

    def __hash__(self):
        """Hash based on content hash for deduplication"""
        return hash(self.content_hash)

    def __eq__(self, other):
        if isinstance(other, ResolvedItem):
            return self.content_hash == other.content_hash
        return False
