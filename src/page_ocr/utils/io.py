"""
I/O adapters for the page extraction pipeline.

Handles:
- Page descriptors and input type detection
- Image loading at recognition quality
- Rendering PDF pages and image files to RGBA buffers
- Reading positioned text from a PDF's text layer
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from ..config import EnhancementDefaults
from .enhancement import EnhancementOptions, as_rgba, resample, scaled_dimensions
from .regions import TextFragment

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp')
PDF_POINTS_PER_INCH = 72


# ============================================================================
# Page Descriptors
# ============================================================================

@dataclass(frozen=True)
class PageDescriptor:
    """One page of a source document (0-based page index)."""
    source: Path
    page_index: int = 0

    @classmethod
    def of(cls, source: Union[str, Path], page_index: int = 0) -> 'PageDescriptor':
        return cls(Path(source), page_index)


def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input file.

    Returns:
        One of: 'pdf', 'image', 'unknown'
    """
    input_path = Path(input_path)

    if not input_path.is_file():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    elif suffix in IMAGE_EXTENSIONS:
        return 'image'

    return 'unknown'


def get_pdf_page_count(pdf_path: Union[str, Path]) -> int:
    """Get the number of pages in a PDF file."""
    try:
        from pdf2image import pdfinfo_from_path
        info = pdfinfo_from_path(str(pdf_path))
        return int(info.get('Pages', 0))
    except Exception as e:
        logger.warning(f"Could not get PDF page count: {e}")
        return 0


def page_descriptors(source: Union[str, Path]) -> List[PageDescriptor]:
    """Descriptors for every page of a PDF, or the single page of an image."""
    source = Path(source)
    input_type = detect_input_type(source)

    if input_type == 'pdf':
        return [PageDescriptor(source, i) for i in range(get_pdf_page_count(source))]
    if input_type == 'image':
        return [PageDescriptor(source, 0)]

    logger.warning(f"Unsupported input: {source}")
    return []


# ============================================================================
# Image Loading
# ============================================================================

def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """
    Load an image file as an RGBA buffer.

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If image cannot be decoded
    """
    import cv2

    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    img = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)

    if img is None:
        raise ValueError(f"Could not decode image: {image_path}")

    logger.debug(f"Loaded image: {image_path}, shape: {img.shape}")
    return as_rgba(img, bgr=True)


def load_image_for_recognition(
    image_path: Union[str, Path],
    options: Optional[EnhancementOptions] = None
) -> np.ndarray:
    """
    Load an image and upsample it for recognition.

    By default the image is scaled 3x within a 4000x4000 ceiling with its
    aspect ratio preserved. Only resampling is applied here; filters run
    later in enhance_for_recognition.
    """
    if options is None:
        defaults = EnhancementDefaults()
        options = EnhancementOptions(
            scale=defaults.load_scale,
            max_width=defaults.load_max_dim,
            max_height=defaults.load_max_dim,
            preserve_aspect_ratio=True,
        )

    image = load_image(image_path)
    height, width = image.shape[:2]
    out_width, out_height = scaled_dimensions(width, height, options)

    logger.info(f"Loaded high-quality image: {out_width}x{out_height} from {width}x{height}")
    return resample(image, out_width, out_height)


# ============================================================================
# Renderers
# ============================================================================

class Renderer(ABC):
    """Turns a page descriptor into an RGBA pixel buffer."""

    @abstractmethod
    async def render(self, descriptor: PageDescriptor, scale: float) -> np.ndarray:
        raise NotImplementedError


class PdfPageRenderer(Renderer):
    """Renders PDF pages with pdf2image (poppler backend)."""

    def render_sync(self, descriptor: PageDescriptor, scale: float) -> np.ndarray:
        try:
            from pdf2image import convert_from_path
        except ImportError:
            raise ImportError(
                "pdf2image is required. Install with: pip install pdf2image\n"
                "Also ensure poppler is installed on your system."
            )

        if not descriptor.source.exists():
            raise FileNotFoundError(f"PDF file not found: {descriptor.source}")

        page_number = descriptor.page_index + 1
        dpi = max(1, int(round(PDF_POINTS_PER_INCH * scale)))
        pil_images = convert_from_path(
            str(descriptor.source),
            dpi=dpi,
            first_page=page_number,
            last_page=page_number,
            fmt='png'
        )
        if not pil_images:
            raise RuntimeError(f"Page {page_number} not found in {descriptor.source}")

        image = np.array(pil_images[0].convert("RGBA"))
        logger.debug(f"Rendered {descriptor.source} page {page_number} at {dpi} DPI: {image.shape}")
        return image

    async def render(self, descriptor: PageDescriptor, scale: float) -> np.ndarray:
        return await asyncio.to_thread(self.render_sync, descriptor, scale)


class ImageFileRenderer(Renderer):
    """'Renders' an image file by loading and resampling it."""

    def __init__(self, max_dim: Optional[int] = None):
        self.max_dim = max_dim or EnhancementDefaults().load_max_dim

    def render_sync(self, descriptor: PageDescriptor, scale: float) -> np.ndarray:
        options = EnhancementOptions(
            scale=scale,
            max_width=self.max_dim,
            max_height=self.max_dim,
            preserve_aspect_ratio=True,
        )
        return load_image_for_recognition(descriptor.source, options)

    async def render(self, descriptor: PageDescriptor, scale: float) -> np.ndarray:
        return await asyncio.to_thread(self.render_sync, descriptor, scale)


class DocumentRenderer(Renderer):
    """Picks the PDF or image renderer from the file type."""

    def __init__(
        self,
        pdf_renderer: Optional[Renderer] = None,
        image_renderer: Optional[Renderer] = None
    ):
        self.pdf_renderer = pdf_renderer or PdfPageRenderer()
        self.image_renderer = image_renderer or ImageFileRenderer()

    async def render(self, descriptor: PageDescriptor, scale: float) -> np.ndarray:
        input_type = detect_input_type(descriptor.source)
        if input_type == 'pdf':
            return await self.pdf_renderer.render(descriptor, scale)
        if input_type == 'image':
            return await self.image_renderer.render(descriptor, scale)
        raise ValueError(f"Unsupported input type for {descriptor.source}")


# ============================================================================
# Structured Text
# ============================================================================

class StructuredTextSource(ABC):
    """
    Supplies positioned text fragments for a page, if it has any.

    Fragments and page sizes are in page units with a bottom-left origin.
    """

    @abstractmethod
    async def get_fragments(self, descriptor: PageDescriptor) -> List[TextFragment]:
        raise NotImplementedError

    @abstractmethod
    async def page_size(self, descriptor: PageDescriptor) -> Tuple[float, float]:
        """Page (width, height) in the same units as the fragments."""
        raise NotImplementedError


def _open_pdf_page(pdf, descriptor: PageDescriptor):
    if descriptor.page_index >= len(pdf.pages):
        raise IndexError(f"Page {descriptor.page_index + 1} not found in {descriptor.source}")
    return pdf.pages[descriptor.page_index]


class PdfTextSource(StructuredTextSource):
    """
    Reads words from a PDF text layer with pdfplumber.

    Coordinates are PDF points flipped to a bottom-left origin. Each word
    keeps a trailing space so that concatenated words stay separated.
    Non-PDF inputs have no text layer and yield no fragments.
    """

    @staticmethod
    def _pdfplumber():
        try:
            import pdfplumber
        except ImportError:
            raise ImportError("pdfplumber is required. Install with: pip install pdfplumber")
        return pdfplumber

    def get_fragments_sync(self, descriptor: PageDescriptor) -> List[TextFragment]:
        if detect_input_type(descriptor.source) != 'pdf':
            return []

        with self._pdfplumber().open(str(descriptor.source)) as pdf:
            page = _open_pdf_page(pdf, descriptor)
            page_height = float(page.height)
            words = page.extract_words()

        fragments = [
            TextFragment(
                text=word["text"] + " ",
                x=float(word["x0"]),
                y=page_height - float(word["bottom"]),
                width=float(word["x1"]) - float(word["x0"]),
                height=float(word["bottom"]) - float(word["top"]),
            )
            for word in words
        ]

        logger.debug(f"Read {len(fragments)} words from {descriptor.source} page {descriptor.page_index + 1}")
        return fragments

    def page_size_sync(self, descriptor: PageDescriptor) -> Tuple[float, float]:
        if detect_input_type(descriptor.source) != 'pdf':
            raise ValueError(f"Not a PDF: {descriptor.source}")

        with self._pdfplumber().open(str(descriptor.source)) as pdf:
            page = _open_pdf_page(pdf, descriptor)
            return float(page.width), float(page.height)

    async def get_fragments(self, descriptor: PageDescriptor) -> List[TextFragment]:
        return await asyncio.to_thread(self.get_fragments_sync, descriptor)

    async def page_size(self, descriptor: PageDescriptor) -> Tuple[float, float]:
        return await asyncio.to_thread(self.page_size_sync, descriptor)
