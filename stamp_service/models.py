# stamp_service/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from stamp_service.errors import ValidationError

# fieldPositions keys starting with this are layout metadata, never fields
RESERVED_MARKER = "_"

# legacy metadata keys inside fieldPositions -> TitleBlockSpec attribute
LEGACY_TITLE_BLOCK_KEYS = {
    "_titleblockWidth": "width",
    "_titleblockX": "x",
    "_titleblockY": "y",
}

DEFAULT_FILENAME = "stamped.pdf"


def _is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _num(v: Any, default: float) -> float:
    if _is_blank(v):
        return float(default)
    return float(v)


@dataclass(frozen=True)
class PlacementSpec:
    x: float = 10.0
    y: float = 10.0
    size: float = 8.0
    max_width: float = 300.0

    @classmethod
    def from_wire(cls, cfg: Any) -> "PlacementSpec":
        if not isinstance(cfg, dict):
            return cls()
        size = cfg.get("size")
        if _is_blank(size):
            size = cfg.get("fontSize")
        return cls(
            x=_num(cfg.get("x"), cls.x),
            y=_num(cfg.get("y"), cls.y),
            # 0 is "unset" for size and width; x/y keep an explicit 0
            size=_num(size, cls.size) or cls.size,
            max_width=_num(cfg.get("maxWidth"), cls.max_width) or cls.max_width,
        )


@dataclass(frozen=True)
class TitleBlockSpec:
    """
    Target width and lower-left position of the title-block image, in points.
    The image is scaled uniformly so its drawn width equals `width`.
    """
    width: float = 600.0
    x: float = 0.0
    y: float = 0.0


class PageMode(str, Enum):
    ALL_PAGES = "all_pages"
    FIRST_PAGE_ONLY = "first_page_only"
    EXPLICIT_INDICES = "explicit_indices"


@dataclass(frozen=True)
class PageSelection:
    mode: PageMode = PageMode.FIRST_PAGE_ONLY
    indices: Tuple[int, ...] = ()

    @classmethod
    def all_pages(cls) -> "PageSelection":
        return cls(PageMode.ALL_PAGES)

    @classmethod
    def first_page_only(cls) -> "PageSelection":
        return cls(PageMode.FIRST_PAGE_ONLY)

    @classmethod
    def explicit(cls, indices) -> "PageSelection":
        return cls(PageMode.EXPLICIT_INDICES, tuple(int(i) for i in indices))


def _split_field_positions(raw: Any) -> Tuple[Dict[str, PlacementSpec], Dict[str, Any]]:
    fields: Dict[str, PlacementSpec] = {}
    meta: Dict[str, Any] = {}
    if not isinstance(raw, dict):
        return fields, meta

    for name, cfg in raw.items():
        if str(name).startswith(RESERVED_MARKER):
            meta[name] = cfg
            continue
        fields[str(name)] = PlacementSpec.from_wire(cfg)
    return fields, meta


def _title_block_from(body: Dict[str, Any], meta: Dict[str, Any]) -> TitleBlockSpec:
    values: Dict[str, Any] = {}
    for key, attr in LEGACY_TITLE_BLOCK_KEYS.items():
        if not _is_blank(meta.get(key)):
            values[attr] = meta[key]

    structured = body.get("titleBlock")
    if isinstance(structured, dict):
        for attr in ("width", "x", "y"):
            if not _is_blank(structured.get(attr)):
                values[attr] = structured[attr]

    # 0 is treated as "unset" for width, matching the legacy layout keys
    width = _num(values.get("width"), TitleBlockSpec.width) or TitleBlockSpec.width
    return TitleBlockSpec(
        width=width,
        x=_num(values.get("x"), TitleBlockSpec.x),
        y=_num(values.get("y"), TitleBlockSpec.y),
    )


def _page_selection_from(body: Dict[str, Any]) -> PageSelection:
    indices = body.get("pageIndices")
    if isinstance(indices, list) and indices:
        return PageSelection.explicit(indices)

    first_only = body.get("stampFirstPageOnly", True)
    if first_only is None:
        first_only = True
    return PageSelection.first_page_only() if first_only else PageSelection.all_pages()


@dataclass(frozen=True)
class StampRequest:
    source_url: str
    field_values: Dict[str, Any] = field(default_factory=dict)
    template_image_url: str | None = None
    fields: Dict[str, PlacementSpec] = field(default_factory=dict)
    title_block: TitleBlockSpec = field(default_factory=TitleBlockSpec)
    pages: PageSelection = field(default_factory=PageSelection)
    filename: str = DEFAULT_FILENAME

    @classmethod
    def from_body(cls, body: Dict[str, Any] | None) -> "StampRequest":
        body = body or {}

        source_url = body.get("fileUrl")
        if _is_blank(source_url):
            raise ValidationError("fileUrl required")

        field_values = body.get("parsedFields") or {}
        if not isinstance(field_values, dict):
            field_values = {}

        fields, meta = _split_field_positions(body.get("fieldPositions"))

        return cls(
            source_url=str(source_url).strip(),
            field_values=field_values,
            template_image_url=(body.get("templateImageUrl") or None),
            fields=fields,
            title_block=_title_block_from(body, meta),
            pages=_page_selection_from(body),
            filename=(body.get("filename") or DEFAULT_FILENAME),
        )

    def text_for(self, name: str) -> str:
        """
        Falsy values (None, "", 0, False) mean "nothing to draw".
        True renders as "true", whole floats without ".0".
        """
        value = self.field_values.get(name)
        if not value:
            return ""
        if isinstance(value, bool):
            return "true"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
