"""
Add-on Config Model
Per-user configuration carried in the manifest URL as base64url JSON
"""
from typing import Optional
import base64
import binascii
import json
import logging

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class AddonConfig(BaseModel):
    """User toggles; every field is optional and absent keys mean reduced functionality"""
    no_4k: bool = False
    tmdb_key: Optional[str] = None
    rd_key: Optional[str] = None

    @classmethod
    def from_blob(cls, blob: Optional[str]) -> "AddonConfig":
        """Decode a URL config segment; anything undecodable yields defaults."""
        text = str(blob or "").strip()
        if not text:
            return cls()
        try:
            padded = text + "=" * (-len(text) % 4)
            raw = base64.urlsafe_b64decode(padded.encode("ascii"))
            data = json.loads(raw.decode("utf-8"))
            if not isinstance(data, dict):
                raise ValueError("config is not an object")
            return cls(**data)
        except (binascii.Error, UnicodeError, ValueError, ValidationError) as e:
            logger.warning("Ignoring invalid config blob: %s", e)
            return cls()

    @property
    def debrid_enabled(self) -> bool:
        return bool((self.rd_key or "").strip())
