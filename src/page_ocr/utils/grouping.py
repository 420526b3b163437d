"""
Paragraph grouping for structured (already digitized) page text.

Fragments are put into reading order and swept once; a fragment joins the
open region when it sits on a nearby line and inside the region's
horizontal span (plus some slack), otherwise the region is closed.
"""

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Iterable, List, Optional

from ..config import GroupingConfig
from .regions import BoundingBox, Region, RegionType, TextFragment

logger = logging.getLogger(__name__)

# Structured text is taken as ground truth
STRUCTURED_TEXT_CONFIDENCE = 1.0


@dataclass
class _OpenRegion:
    bbox: BoundingBox
    last_y: float
    parts: List[str] = field(default_factory=list)

    @classmethod
    def start(cls, fragment: TextFragment) -> '_OpenRegion':
        return cls(bbox=fragment.bbox, last_y=fragment.y, parts=[fragment.text])

    def add(self, fragment: TextFragment):
        self.parts.append(fragment.text)
        self.bbox = self.bbox.union(fragment.bbox)
        self.last_y = fragment.y


def _reading_order(line_tolerance: float):
    def compare(a: TextFragment, b: TextFragment) -> int:
        y_diff = b.y - a.y
        if abs(y_diff) > line_tolerance:
            return 1 if y_diff > 0 else -1
        x_diff = a.x - b.x
        return (x_diff > 0) - (x_diff < 0)
    return compare


def sort_fragments(
    fragments: Iterable[TextFragment],
    line_tolerance: float = 5.0
) -> List[TextFragment]:
    """Top of page first; fragments on the same line left to right."""
    return sorted(fragments, key=cmp_to_key(_reading_order(line_tolerance)))


def group_fragments(
    fragments: Iterable[TextFragment],
    page: int = 0,
    config: Optional[GroupingConfig] = None
) -> List[Region]:
    """
    Merge positioned text fragments into paragraph regions.

    Args:
        fragments: Fragments of one page, in any order
        page: Page index stamped on the regions
        config: Grouping thresholds

    Returns:
        Paragraph regions in reading order; empty when there is no text
    """
    config = config or GroupingConfig()

    candidates = [f for f in fragments if f.text and f.text.strip()]
    if not candidates:
        logger.debug(f"No text fragments on page {page}")
        return []

    ordered = sort_fragments(candidates, config.line_tolerance)
    max_line_gap = config.line_tolerance * 2

    regions: List[Region] = []

    def close(open_region: Optional[_OpenRegion]):
        if open_region is None:
            return
        if open_region.bbox.height < config.min_region_height:
            logger.debug(f"Dropping sliver region of height {open_region.bbox.height}")
            return
        regions.append(Region(
            page=page,
            region_type=RegionType.PARAGRAPH,
            bbox=open_region.bbox,
            text="".join(open_region.parts).strip(),
            confidence=STRUCTURED_TEXT_CONFIDENCE,
        ))

    current: Optional[_OpenRegion] = None
    for fragment in ordered:
        if (current is not None
                and abs(fragment.y - current.last_y) <= max_line_gap
                and current.bbox.x - config.horizontal_slack
                <= fragment.x
                <= current.bbox.x2 + config.horizontal_slack):
            current.add(fragment)
        else:
            close(current)
            current = _OpenRegion.start(fragment)

    close(current)

    logger.info(f"Grouped {len(candidates)} fragments into {len(regions)} regions on page {page}")
    return regions
