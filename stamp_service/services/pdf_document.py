# stamp_service/services/pdf_document.py
from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Union
from urllib.parse import urlsplit

from pypdf import PageObject, PdfReader, PdfWriter
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from stamp_service.errors import ParseError

# Built-in Type1 font, no embedding required
STAMP_FONT = "Helvetica"
LEADING_RATIO = 1.2

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"


def image_format_for(url: str) -> ImageFormat:
    """
    .png (any case) -> PNG, anything else -> JPEG.
    Checks the URL path too so a trailing query string doesn't hide the extension.
    """
    u = (url or "").strip()
    path = urlsplit(u).path
    if u.lower().endswith(".png") or path.lower().endswith(".png"):
        return ImageFormat.PNG
    return ImageFormat.JPEG


@dataclass(frozen=True)
class EmbeddedImage:
    reader: ImageReader
    width: int
    height: int
    format: ImageFormat


@dataclass(frozen=True)
class TextOp:
    text: str
    x: float
    y: float
    size: float
    max_width: float
    font: str = STAMP_FONT


@dataclass(frozen=True)
class ImageOp:
    image: EmbeddedImage
    x: float
    y: float
    width: float
    height: float


DrawOp = Union[TextOp, ImageOp]


def wrap_lines(text: str, font: str, size: float, max_width: float) -> List[str]:
    """
    Breaks on embedded newlines, then wraps each line to max_width.
    simpleSplit collapses whitespace, so a line's leading indent is measured
    off first and put back on its first wrapped piece. Blank lines are kept.
    """
    out: List[str] = []
    for raw in text.split("\n"):
        body = raw.lstrip()
        if not body:
            out.append("")
            continue
        indent = raw[: len(raw) - len(body)]
        room = max(max_width - stringWidth(indent, font, size), 1)
        pieces = simpleSplit(body, font, size, room) or [body]
        out.append(indent + pieces[0])
        out.extend(pieces[1:])
    return out


class StampDocument:
    """
    Parsed PDF plus the drawing queued for each page.

    Drawing calls only record operations; save() renders them onto a
    reportlab overlay per page and merges that over the original content.
    Pages that were never drawn on are written back untouched.
    """

    def __init__(self, reader: PdfReader):
        self._reader = reader
        self._ops: Dict[int, List[DrawOp]] = {}

    @classmethod
    def load(cls, data: bytes) -> "StampDocument":
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise ParseError("Encrypted PDFs are not supported")
            len(reader.pages)  # forces the page tree to parse
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(f"Invalid PDF: {e}") from e
        return cls(reader)

    @property
    def page_count(self) -> int:
        return len(self._reader.pages)

    def page_size(self, index: int) -> tuple[float, float]:
        page = self._reader.pages[index]
        return float(page.mediabox.width), float(page.mediabox.height)

    def embed_image(self, data: bytes, fmt: ImageFormat) -> EmbeddedImage:
        signature = PNG_SIGNATURE if fmt is ImageFormat.PNG else JPEG_SIGNATURE
        if not data.startswith(signature):
            raise ParseError(f"Title-block image is not a valid {fmt.value.upper()} file")

        try:
            reader = ImageReader(io.BytesIO(data))
            w, h = reader.getSize()
        except Exception as e:
            raise ParseError(f"Could not read title-block image: {e}") from e

        if not w or not h:
            raise ParseError("Title-block image has no size")
        return EmbeddedImage(reader=reader, width=int(w), height=int(h), format=fmt)

    def draw_text(
        self,
        index: int,
        text: str,
        *,
        x: float,
        y: float,
        size: float,
        max_width: float,
    ) -> None:
        self._page_ops(index).append(TextOp(text=text, x=x, y=y, size=size, max_width=max_width))

    def draw_image(
        self,
        index: int,
        image: EmbeddedImage,
        *,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        self._page_ops(index).append(ImageOp(image=image, x=x, y=y, width=width, height=height))

    def operations(self, index: int) -> List[DrawOp]:
        return list(self._ops.get(index, []))

    def save(self) -> bytes:
        writer = PdfWriter(clone_from=self._reader)

        for index, ops in sorted(self._ops.items()):
            if not ops:
                continue
            w, h = self.page_size(index)
            writer.pages[index].merge_page(_render_overlay(w, h, ops))

        out = io.BytesIO()
        writer.write(out)
        return out.getvalue()

    def _page_ops(self, index: int) -> List[DrawOp]:
        if index < 0 or index >= self.page_count:
            raise IndexError(f"Page index out of range: {index}")
        return self._ops.setdefault(index, [])


def _render_overlay(width: float, height: float, ops: List[DrawOp]) -> PageObject:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(width, height))

    for op in ops:
        if isinstance(op, ImageOp):
            c.drawImage(
                op.image.reader,
                op.x,
                op.y,
                width=op.width,
                height=op.height,
                mask="auto",
            )
            continue

        t = c.beginText(op.x, op.y)
        t.setFont(op.font, op.size, leading=op.size * LEADING_RATIO)
        t.setFillColor(colors.black)
        t.textLines(wrap_lines(op.text, op.font, op.size, op.max_width), trim=0)
        c.drawText(t)

    c.showPage()
    c.save()
    buf.seek(0)
    return PdfReader(buf).pages[0]
