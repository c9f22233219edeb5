# stamp_service/services/pdf_stamp.py
from __future__ import annotations

from typing import List, Tuple

from stamp_service.models import PageMode, PageSelection, StampRequest, TitleBlockSpec
from stamp_service.services.pdf_document import EmbeddedImage, StampDocument


def select_pages(selection: PageSelection, page_count: int) -> List[int]:
    if selection.mode is PageMode.ALL_PAGES:
        return list(range(page_count))

    if selection.mode is PageMode.EXPLICIT_INDICES:
        seen: List[int] = []
        for i in selection.indices:
            if 0 <= i < page_count and i not in seen:
                seen.append(i)
        return seen

    # first page only; an empty document has nothing to draw on
    return [0] if page_count > 0 else []


def place_title_block(image: EmbeddedImage, spec: TitleBlockSpec) -> Tuple[float, float, float, float]:
    """
    Uniform scale so the drawn width equals spec.width:
      scale = spec.width / image.width
    Returns (x, y, width, height).
    """
    scale = spec.width / float(image.width)
    return spec.x, spec.y, image.width * scale, image.height * scale


def stamp_document(
    doc: StampDocument,
    request: StampRequest,
    title_image: EmbeddedImage | None = None,
) -> List[int]:
    """
    Queue the title-block and text fields on every selected page.
    Returns the page indices that were stamped.
    """
    pages = select_pages(request.pages, doc.page_count)

    for index in pages:
        if title_image is not None:
            x, y, w, h = place_title_block(title_image, request.title_block)
            doc.draw_image(index, title_image, x=x, y=y, width=w, height=h)

        for name, placement in request.fields.items():
            text = request.text_for(name)
            if not text:
                continue
            doc.draw_text(
                index,
                text,
                x=placement.x,
                y=placement.y,
                size=placement.size,
                max_width=placement.max_width,
            )

    return pages
