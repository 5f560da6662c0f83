"""FastAPI app exposing the Stremio add-on protocol (manifest + streams)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from ..core.errors import DebridError
from ..models.addon_config import AddonConfig
from ..models.search_request import MediaType
from ..services.realdebrid_client import RealDebridClient
from ..utils.text_utils import extract_content_hash
from .runtime import StremizioRuntime, build_runtime

logger = logging.getLogger(__name__)

ADDON_ID = "org.stremio.ita.multisource"
ADDON_VERSION = "2.0.0"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_manifest() -> Dict[str, Any]:
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": "ITA Plus (Multi-Source)",
        "description": "Cerca su CorsaroNero, 1337x, APIBay e Knaben. Solo ITA.",
        "resources": ["stream"],
        "types": [MediaType.MOVIE.value, MediaType.SERIES.value],
        "idPrefixes": ["tt"],
        "catalogs": [],
        "behaviorHints": {"configurable": True, "configurationRequired": False},
    }


def create_app(runtime: Optional[StremizioRuntime] = None) -> FastAPI:
    runtime = runtime or build_runtime()

    app = FastAPI(title="Stremizio", version=ADDON_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    def _streams(request: Request, config_blob: str, media_type: str, stream_id: str):
        try:
            kind = MediaType.parse(media_type)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Unsupported type: {media_type}")

        config = AddonConfig.from_blob(config_blob)
        try:
            meta = runtime.tmdb.resolve(kind, stream_id, config.tmdb_key)
            streams = runtime.stream_manager.get_streams(meta.to_query(kind), kind, config)
        except Exception:
            logger.exception("Stream lookup failed for %s/%s", media_type, stream_id)
            return JSONResponse({"streams": []}, status_code=500)

        # Debrid is opt-in: playback goes through our resolve endpoint instead of the swarm.
        if config.debrid_enabled and config_blob:
            base = str(request.base_url).rstrip("/")
            for stream in streams:
                info_hash = stream.pop("infoHash")
                stream["url"] = f"{base}/{config_blob}/resolve/{info_hash}"
        return {"streams": streams}

    @app.get("/")
    def root() -> Dict:
        return {"manifest": "/manifest.json"}

    @app.get("/health")
    def health() -> Dict:
        return {
            "ok": True,
            "time": _utc_now_iso(),
            "sources": runtime.stream_manager.get_source_health_snapshot(),
            "fetcher": runtime.fetcher.stats(),
            "searches": runtime.search_stats.snapshot(),
        }

    @app.get("/manifest.json")
    def manifest() -> Dict:
        return build_manifest()

    @app.get("/{config_blob}/manifest.json")
    def configured_manifest(config_blob: str) -> Dict:
        return build_manifest()

    @app.get("/stream/{media_type}/{stream_id}.json")
    def stream(request: Request, media_type: str, stream_id: str):
        return _streams(request, "", media_type, stream_id)

    @app.get("/{config_blob}/stream/{media_type}/{stream_id}.json")
    def configured_stream(request: Request, config_blob: str, media_type: str, stream_id: str):
        return _streams(request, config_blob, media_type, stream_id)

    @app.get("/{config_blob}/resolve/{info_hash}")
    def resolve(config_blob: str, info_hash: str):
        config = AddonConfig.from_blob(config_blob)
        if not config.debrid_enabled:
            raise HTTPException(status_code=400, detail="RealDebrid key not configured.")
        content_hash = extract_content_hash(f"btih:{info_hash}")
        if not content_hash:
            raise HTTPException(status_code=400, detail="Invalid infohash.")
        client = RealDebridClient(config.rd_key, settings=runtime.settings)
        try:
            url = client.resolve_hash(content_hash)
        except DebridError as e:
            logger.warning("RealDebrid resolve failed for %s: %s", content_hash, e)
            raise HTTPException(status_code=502, detail=str(e))
        return RedirectResponse(url, status_code=302)

    return app


def main() -> None:
    import uvicorn

    host = str(os.environ.get("STREMIZIO_HOST", "0.0.0.0") or "0.0.0.0")
    port = int(os.environ.get("STREMIZIO_PORT", "7000") or 7000)
    uvicorn.run(create_app(), host=host, port=port)
