"""
Page extraction orchestration.

Provides:
- PageExtractor, which prefers a page's own text layer and falls back to
  render -> enhance -> recognize when there is none
- Explicit recognition outcomes (success or typed failure)
- Concurrent extraction of several pages

A page always yields at least one Region. Collaborator failures become a
full-page Region with confidence 0 and an "[OCR Error: ...]" text.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from ..config import PipelineConfig, get_config
from .enhancement import EnhancementOptions, enhance_for_recognition, optimal_scale
from .grouping import group_fragments
from .io import DocumentRenderer, PageDescriptor, PdfTextSource, Renderer, StructuredTextSource
from .ocr_text import Recognizer, TesseractRecognizer, format_ocr_error
from .recognition_config import describe_config, select_config
from .regions import BoundingBox, Region, RegionType

logger = logging.getLogger(__name__)


# ============================================================================
# Recognition Outcomes
# ============================================================================

class FailureReason(Enum):
    RENDER_FAILED = "render_failed"
    EMPTY_PAGE = "empty_page"
    RECOGNITION_FAILED = "recognition_failed"


@dataclass(frozen=True)
class RecognitionSuccess:
    text: str
    confidence: float


@dataclass(frozen=True)
class RecognitionFailure:
    reason: FailureReason
    detail: str


RecognitionOutcome = Union[RecognitionSuccess, RecognitionFailure]


def _clamp_confidence(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


# ============================================================================
# Page Extractor
# ============================================================================

class PageExtractor:
    """
    Extracts regions from single pages.

    Holds no per-page state, so one instance may serve several pages
    concurrently. Results are returned to the caller and never retained.
    """

    def __init__(
        self,
        recognizer: Optional[Recognizer] = None,
        renderer: Optional[Renderer] = None,
        text_source: Optional[StructuredTextSource] = None,
        config: Optional[PipelineConfig] = None
    ):
        self.config = config or get_config()
        self._recognizer = recognizer
        self.renderer = renderer or DocumentRenderer()
        self.text_source = text_source or PdfTextSource()

    @property
    def recognizer(self) -> Recognizer:
        """Lazy-load Tesseract unless a recognizer was given."""
        if self._recognizer is None:
            self._recognizer = TesseractRecognizer(language=self.config.extraction.language)
        return self._recognizer

    def enhancement_options(self, width: int, height: int) -> EnhancementOptions:
        """
        Enhancement profile for a rendered page.

        Pages above the large-image threshold get a fixed moderate scale and
        skip the blur and threshold stages; smaller pages are scaled toward
        the resolution target (capped) with every stage enabled.
        """
        extraction = self.config.extraction
        enhancement = self.config.enhancement
        base = EnhancementOptions(
            max_width=enhancement.max_width,
            max_height=enhancement.max_height,
            preserve_aspect_ratio=True,
        )

        if width * height > extraction.large_image_pixels:
            return base.with_overrides(
                scale=extraction.large_image_scale,
                denoise=False,
                adaptive_threshold=False,
            )

        return base.with_overrides(scale=min(extraction.max_scale, optimal_scale(width, height)))

    async def extract_page(self, descriptor: PageDescriptor, page_index: int) -> List[Region]:
        """
        Extract the regions of one page.

        Args:
            descriptor: Page to read
            page_index: Page index stamped on the regions

        Returns:
            Paragraph regions from the text layer, or a single full-page
            recognition region
        """
        regions = await self._structured_regions(descriptor, page_index)
        if regions:
            logger.info(f"Using native text for page {page_index + 1} ({len(regions)} regions)")
            return regions

        logger.info(f"No native text found on page {page_index + 1}, falling back to OCR")
        return [await self._recognize_page(descriptor, page_index)]

    async def extract_pages(self, descriptors: Sequence[PageDescriptor]) -> Dict[int, List[Region]]:
        """Extract several pages concurrently, keyed by page index."""
        results = await asyncio.gather(
            *(self.extract_page(d, d.page_index) for d in descriptors)
        )
        return {d.page_index: regions for d, regions in zip(descriptors, results)}

    async def _structured_regions(self, descriptor: PageDescriptor, page_index: int) -> List[Region]:
        # Grouping runs in page units; boxes are then mapped onto the canvas
        # the renderer would produce at render_scale.
        try:
            fragments = await self.text_source.get_fragments(descriptor)
            regions = group_fragments(fragments, page=page_index, config=self.config.grouping)
            if not regions:
                return []
            _, page_height = await self.text_source.page_size(descriptor)
        except Exception as e:
            logger.warning(f"Text layer extraction failed for page {page_index + 1}: {e}")
            return []

        scale = self.config.extraction.render_scale
        return [
            replace(region, bbox=region.bbox.page_to_canvas(page_height, scale))
            for region in regions
        ]

    async def _recognize_page(self, descriptor: PageDescriptor, page_index: int) -> Region:
        bbox = BoundingBox(0, 0, 0, 0)

        try:
            buffer = await self.renderer.render(descriptor, self.config.extraction.render_scale)
        except Exception as e:
            logger.error(f"Rendering page {page_index + 1} failed: {e}")
            outcome: RecognitionOutcome = RecognitionFailure(FailureReason.RENDER_FAILED, str(e))
        else:
            height, width = buffer.shape[:2]
            bbox = BoundingBox(0, 0, width, height)
            outcome = await self._recognize_buffer(buffer, page_index)

        return self._outcome_to_region(outcome, bbox, page_index)

    async def _recognize_buffer(self, buffer: np.ndarray, page_index: int) -> RecognitionOutcome:
        if buffer.size == 0:
            return RecognitionFailure(FailureReason.EMPTY_PAGE, "rendered page is empty")

        extraction = self.config.extraction
        try:
            height, width = buffer.shape[:2]
            options = self.enhancement_options(width, height)
            enhanced = enhance_for_recognition(buffer, options, self.config.enhancement)

            out_height, out_width = enhanced.shape[:2]
            config = select_config(
                out_width, out_height, extraction.text_size, extraction.content_class
            )
            describe_config(config, f"page {page_index + 1}")

            result = await self.recognizer.recognize(enhanced, config)
        except Exception as e:
            logger.error(f"Full-page OCR failed for page {page_index + 1}: {e}")
            return RecognitionFailure(FailureReason.RECOGNITION_FAILED, str(e))

        logger.info(
            f"Full-page OCR completed for page {page_index + 1}: "
            f"{len(result.text)} chars, confidence {result.confidence:.2f}"
        )
        return RecognitionSuccess(result.text.strip(), _clamp_confidence(result.confidence))

    @staticmethod
    def _outcome_to_region(outcome: RecognitionOutcome, bbox: BoundingBox, page_index: int) -> Region:
        if isinstance(outcome, RecognitionSuccess):
            return Region(
                page=page_index,
                region_type=RegionType.PARAGRAPH,
                bbox=bbox,
                text=outcome.text,
                confidence=outcome.confidence,
            )

        return Region(
            page=page_index,
            region_type=RegionType.PARAGRAPH,
            bbox=bbox,
            text=format_ocr_error(outcome.detail),
            confidence=0.0,
        )


async def extract_page(
    descriptor: PageDescriptor,
    page_index: Optional[int] = None,
    extractor: Optional[PageExtractor] = None
) -> List[Region]:
    """Extract one page with a default (or given) PageExtractor."""
    extractor = extractor or PageExtractor()
    if page_index is None:
        page_index = descriptor.page_index
    return await extractor.extract_page(descriptor, page_index)
