"""
Error types shared across sources, services and the web layer
"""


class StremizioError(Exception):
    """Base class for add-on errors"""


class SourceUnavailable(StremizioError):
    """Network error, non-2xx status or timeout talking to a source"""


class MalformedContent(StremizioError):
    """A listing row or detail page is missing an expected field"""


class DebridError(StremizioError):
    """RealDebrid refused or failed to resolve a magnet"""
