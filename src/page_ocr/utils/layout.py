"""
Placeholder layout step.

No layout model is run. The page is split into up to three fixed
horizontal paragraph bands so that region-based recognition has something
to work on.
"""

import logging
from typing import List

from .regions import BoundingBox, Region, RegionType

logger = logging.getLogger(__name__)

BAND_MARGIN = 50
MAX_BAND_HEIGHT = 200
MIN_BAND_HEIGHT = 50


def detect_layout(width: int, height: int, page: int = 0) -> List[Region]:
    """
    Three static bands across a ``width`` x ``height`` page.

    Bands shorter than 50 pixels are dropped, so small pages get fewer.
    """
    third = height / 3
    band_width = width - 2 * BAND_MARGIN

    bands = [
        BoundingBox(BAND_MARGIN, BAND_MARGIN, band_width, min(MAX_BAND_HEIGHT, third)),
        BoundingBox(BAND_MARGIN, third + 60, band_width, min(MAX_BAND_HEIGHT, third)),
        BoundingBox(BAND_MARGIN, 2 * third + 70, band_width, min(MAX_BAND_HEIGHT, third - 70)),
    ]

    regions = [
        Region(page=page, region_type=RegionType.PARAGRAPH, bbox=bbox, confidence=1.0)
        for bbox in bands
        if bbox.height > MIN_BAND_HEIGHT and bbox.width > 0
    ]

    logger.debug(f"Placeholder layout produced {len(regions)} regions for {width}x{height}")
    return regions
