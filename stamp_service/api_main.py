# stamp_service/api_main.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator

import httpx
from fastapi import Body, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stamp_service.config import Settings
from stamp_service.errors import ValidationError
from stamp_service.services.stamp_handler import run_stamp
from stamp_service.storage.uploader import build_uploader

logger = logging.getLogger(__name__)

settings = Settings.from_env()

app = FastAPI(title="PDF Stamp API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return settings


def get_http_client() -> Iterator[httpx.Client]:
    # one client per request, closed when the response is sent
    with httpx.Client(follow_redirects=True) as client:
        yield client


@app.get("/")
def root():
    return {"ok": True, "try": ["/docs", "/api/health", "/api/stamp"]}


@app.get("/api/health")
def health():
    return {"ok": True}


@app.post("/api/stamp")
def stamp(
    body: Dict[str, Any] = Body(default={}),
    cfg: Settings = Depends(get_settings),
    client: httpx.Client = Depends(get_http_client),
):
    """
    body = {
      "fileUrl": "...",                  # required
      "parsedFields": {name: value},
      "templateImageUrl": "...png|jpg",  # optional, best effort
      "fieldPositions": {name: {x, y, size, maxWidth}},
      "stampFirstPageOnly": true
    }
    """
    try:
        outcome = run_stamp(body, client, lambda: build_uploader(cfg, client))
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Stamp failed for fileUrl=%s", (body or {}).get("fileUrl"))
        return JSONResponse(status_code=500, content={"error": str(e)})

    return {"stampedUrl": outcome.url, "cloudinary": outcome.raw}
