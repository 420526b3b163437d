"""
Region data model for the page extraction pipeline.

Provides:
- BoundingBox geometry
- TextFragment (positioned text from a structured-text source)
- Region (the unit of output for every extraction path)
"""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ============================================================================
# Data Classes and Enums
# ============================================================================

class RegionType(Enum):
    """Semantic types of page regions."""
    PARAGRAPH = "paragraph"
    TABLE = "table"
    IMAGE = "image"
    HEADING = "heading"


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box stored as origin plus size."""
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_xywh(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> 'BoundingBox':
        return cls(x1, y1, x2 - x1, y2 - y1)

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        """Smallest box containing both boxes."""
        return BoundingBox.from_corners(
            min(self.x, other.x),
            min(self.y, other.y),
            max(self.x2, other.x2),
            max(self.y2, other.y2),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    def page_to_canvas(self, page_height: float, scale: float) -> 'BoundingBox':
        """
        Convert a box in page units (bottom-left origin) to canvas pixels
        (top-left origin) for a page rendered at ``scale``.
        """
        return BoundingBox(
            self.x * scale,
            (page_height - self.y2) * scale,
            self.width * scale,
            self.height * scale,
        )


@dataclass(frozen=True)
class TextFragment:
    """
    A positioned run of already-digitized text.

    Coordinates are page units with the origin at the bottom-left corner,
    so a larger ``y`` is higher on the page. The box spans
    ``[x, x + width]`` by ``[y, y + height]``.
    """
    text: str
    x: float
    y: float
    width: float
    height: float

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)


def _new_region_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Region:
    """A bounding box plus extracted text and confidence."""
    page: int
    region_type: RegionType
    bbox: BoundingBox
    text: Optional[str] = None
    confidence: Optional[float] = None
    region_id: str = field(default_factory=_new_region_id)

    def with_page(self, page: int) -> 'Region':
        return replace(self, page=page)

    def with_text(self, text: str, confidence: Optional[float] = None) -> 'Region':
        return replace(self, text=text, confidence=confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.region_id,
            "page": self.page,
            "type": self.region_type.value,
            "bbox": self.bbox.to_dict(),
            "text": self.text,
            "confidence": self.confidence,
        }
