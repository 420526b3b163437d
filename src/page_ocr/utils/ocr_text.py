"""
Text recognition for page images.

Provides:
- Recognizer interface used by the extraction pipeline
- Tesseract-backed recognizer
- Region-by-region recognition on a page buffer
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

import numpy as np

from .recognition_config import PageSegMode, RecognitionConfig, TessParam, select_config
from .regions import Region

logger = logging.getLogger(__name__)

OCR_ERROR_TEMPLATE = "[OCR Error: {detail}]"
REGION_PADDING = 10


def format_ocr_error(detail: object) -> str:
    return OCR_ERROR_TEMPLATE.format(detail=detail)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class LineResult:
    """OCR result for a line of text."""
    text: str
    confidence: float


@dataclass
class RecognitionResult:
    """Text recognized in one image with a confidence in [0, 1]."""
    text: str
    confidence: float
    lines: List[LineResult] = field(default_factory=list)
    engine_used: str = ""


# ============================================================================
# Recognizer Interface
# ============================================================================

class Recognizer(ABC):
    """
    Interface for recognition engines.

    Implementations may raise on failure; callers decide how to recover.
    """

    @abstractmethod
    async def recognize(self, buffer: np.ndarray, config: RecognitionConfig) -> RecognitionResult:
        raise NotImplementedError


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractRecognizer(Recognizer):
    """OCR using Tesseract through pytesseract."""

    def __init__(self, language: str = "eng"):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language

    def recognize_sync(self, buffer: np.ndarray, config: RecognitionConfig) -> RecognitionResult:
        """Blocking recognition of an RGBA buffer."""
        import cv2

        rgb = cv2.cvtColor(buffer, cv2.COLOR_RGBA2RGB)
        data = self.pytesseract.image_to_data(
            rgb,
            lang=self.language,
            config=config.to_tesseract_args(),
            output_type=self.pytesseract.Output.DICT
        )

        lines: List[LineResult] = []
        current_words: List[str] = []
        current_confs: List[float] = []
        current_key = None
        confidences: List[float] = []

        def flush():
            if current_words:
                lines.append(LineResult(
                    text=' '.join(current_words),
                    confidence=float(np.mean(current_confs))
                ))

        for i in range(len(data['text'])):
            text = str(data['text'][i]).strip()
            conf = float(data['conf'][i])

            if conf < 0 or not text:  # -1 means no valid confidence
                continue

            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            if key != current_key:
                flush()
                current_words, current_confs = [], []
                current_key = key

            current_words.append(text)
            current_confs.append(conf / 100.0)
            confidences.append(conf / 100.0)

        flush()

        return RecognitionResult(
            text='\n'.join(line.text for line in lines),
            confidence=float(np.mean(confidences)) if confidences else 0.0,
            lines=lines,
            engine_used="tesseract"
        )

    async def recognize(self, buffer: np.ndarray, config: RecognitionConfig) -> RecognitionResult:
        return await asyncio.to_thread(self.recognize_sync, buffer, config)


# ============================================================================
# Region Recognition
# ============================================================================

def _region_config(width: int, height: int) -> RecognitionConfig:
    return select_config(width, height, "medium", "paragraph").with_overrides(
        {TessParam.PAGESEG_MODE: PageSegMode.SINGLE_BLOCK}
    )


async def recognize_regions(
    buffer: np.ndarray,
    page: int,
    regions: Sequence[Region],
    recognizer: Recognizer,
    config: Optional[RecognitionConfig] = None,
    padding: int = REGION_PADDING
) -> List[Region]:
    """
    Recognize text inside each region of a page buffer.

    Each region is cropped with ``padding`` pixels on every side (clamped to
    the image). Regions with no area are returned with empty text. A failure
    on one region is recorded on that region and does not stop the rest.

    Args:
        buffer: RGBA page buffer
        page: Page index stamped on the results
        regions: Regions in buffer pixel coordinates
        recognizer: Recognition engine
        config: Parameters for every region (default: single-block profile)
        padding: Extra pixels around each region

    Returns:
        Copies of the regions with text and confidence filled in
    """
    image_height, image_width = buffer.shape[:2]
    results: List[Region] = []

    logger.info(f"Starting region-based OCR for {len(regions)} regions")

    for i, region in enumerate(regions):
        x, y, width, height = (int(round(v)) for v in region.bbox.to_xywh())

        x0 = max(0, x - padding)
        y0 = max(0, y - padding)
        x1 = min(image_width, x + width + padding)
        y1 = min(image_height, y + height + padding)

        if width <= 0 or height <= 0 or x1 <= x0 or y1 <= y0:
            logger.warning(f"Skipping invalid region {i + 1} with dimensions {width}x{height}")
            results.append(replace(region, page=page, text=""))
            continue

        crop = buffer[y0:y1, x0:x1].copy()
        region_config = config or _region_config(x1 - x0, y1 - y0)

        try:
            result = await recognizer.recognize(crop, region_config)
            confidence = min(1.0, max(0.0, float(result.confidence)))
            logger.debug(
                f"OCR completed for region {i + 1}: {len(result.text)} chars, "
                f"confidence {confidence:.2f}"
            )
            results.append(replace(region, page=page, text=result.text.strip(), confidence=confidence))
        except Exception as e:
            logger.error(f"OCR failed for region {i + 1}: {e}")
            results.append(replace(region, page=page, text=format_ocr_error(e), confidence=0.0))

    total_chars = sum(len(r.text or "") for r in results)
    logger.info(f"Region-based OCR completed: {total_chars} characters")
    return results
