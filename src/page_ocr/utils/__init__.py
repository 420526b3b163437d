"""
Utility modules for the page extraction pipeline.
"""

from .regions import BoundingBox, Region, RegionType, TextFragment
from .filters import gaussian_blur, sharpen, enhance_contrast, adaptive_threshold
from .enhancement import EnhancementOptions, enhance_for_recognition, optimal_scale, as_rgba
from .recognition_config import RecognitionConfig, TessParam, select_config, describe_config
from .grouping import group_fragments
from .layout import detect_layout
from .ocr_text import Recognizer, RecognitionResult, TesseractRecognizer, recognize_regions
from .io import PageDescriptor, DocumentRenderer, PdfTextSource, load_image_for_recognition
from .extraction import PageExtractor, extract_page

__all__ = [
    # Regions
    "BoundingBox", "Region", "RegionType", "TextFragment",
    # Filters
    "gaussian_blur", "sharpen", "enhance_contrast", "adaptive_threshold",
    # Enhancement
    "EnhancementOptions", "enhance_for_recognition", "optimal_scale", "as_rgba",
    # Recognition config
    "RecognitionConfig", "TessParam", "select_config", "describe_config",
    # Grouping and layout
    "group_fragments", "detect_layout",
    # OCR
    "Recognizer", "RecognitionResult", "TesseractRecognizer", "recognize_regions",
    # IO
    "PageDescriptor", "DocumentRenderer", "PdfTextSource", "load_image_for_recognition",
    # Extraction
    "PageExtractor", "extract_page",
]
