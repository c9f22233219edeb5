# stamp_service/services/stamp_handler.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

import httpx

from stamp_service.models import StampRequest
from stamp_service.services.fetcher import fetch_bytes, fetch_optional
from stamp_service.services.pdf_document import EmbeddedImage, StampDocument, image_format_for
from stamp_service.services.pdf_stamp import stamp_document
from stamp_service.storage.uploader import Uploader, extract_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StampOutcome:
    url: str
    raw: Dict[str, Any]
    pages: List[int] = field(default_factory=list)
    title_block: bool = False


def load_title_block(
    client: httpx.Client,
    doc: StampDocument,
    url: str | None,
) -> EmbeddedImage | None:
    """
    Best effort: a failed download means "no title-block", not a failed stamp.
    Bytes that do arrive but can't be embedded still raise ParseError.
    """
    if not url:
        return None

    result = fetch_optional(client, url, "title-block image")
    if not result.ok:
        logger.warning("Title-block skipped: %s", result.error)
        return None

    return doc.embed_image(result.data, image_format_for(url))


def run_stamp(
    body: Dict[str, Any] | None,
    client: httpx.Client,
    make_uploader: Callable[[], Uploader],
) -> StampOutcome:
    """
    validate -> fetch -> parse -> title-block -> stamp -> save -> upload
    Stops at the first failure; nothing is retried.
    The uploader is only built once the request is known to be valid.
    """
    request = StampRequest.from_body(body)
    uploader = make_uploader()

    pdf_bytes = fetch_bytes(client, request.source_url, "original PDF")
    doc = StampDocument.load(pdf_bytes)

    title_image = load_title_block(client, doc, request.template_image_url)
    pages = stamp_document(doc, request, title_image)

    out_bytes = doc.save()

    raw = uploader.upload(out_bytes, request.filename)
    return StampOutcome(
        url=extract_url(raw),
        raw=raw,
        pages=pages,
        title_block=title_image is not None,
    )
