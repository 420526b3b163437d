"""
Page Text Extraction
====================

Turns a document page into machine-readable text regions, reading the
page's own text layer when it has one and recognizing a conditioned page
image otherwise.

Main components:
- Kernel filters (blur, sharpen, block contrast, adaptive threshold)
- Image enhancement pipeline and resolution heuristics
- Tesseract configuration selection
- Paragraph grouping of positioned text
- Page extraction with recognition fallback
"""

__version__ = "1.0.0"

from .utils.enhancement import EnhancementOptions, enhance_for_recognition, optimal_scale
from .utils.extraction import PageExtractor, extract_page
from .utils.grouping import group_fragments
from .utils.io import PageDescriptor
from .utils.recognition_config import RecognitionConfig, select_config
from .utils.regions import BoundingBox, Region, RegionType, TextFragment

__all__ = [
    "enhance_for_recognition", "EnhancementOptions", "optimal_scale",
    "select_config", "RecognitionConfig",
    "group_fragments",
    "extract_page", "PageExtractor", "PageDescriptor",
    "Region", "RegionType", "BoundingBox", "TextFragment",
]
