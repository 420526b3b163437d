"""
Image enhancement engine for the page extraction pipeline.

Provides:
- EnhancementOptions (immutable pipeline settings)
- Output size computation with a hard safety ceiling
- Quality-preserving resampling
- The fixed filter pipeline: denoise -> sharpen -> contrast -> threshold
- A heuristic resolution-target scale factor
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

from ..config import EnhancementDefaults
from . import filters

logger = logging.getLogger(__name__)


# Assumed page diagonal (inches) and target density for optimal_scale
ASSUMED_PAGE_DIAGONAL = 8.5
TARGET_DPI_EQUIVALENT = 300
MIN_SCALE = 1.0
MAX_SCALE = 4.0


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class EnhancementOptions:
    """Settings for one run of the enhancement pipeline."""
    scale: float = 1.0
    denoise: bool = True
    sharpen: bool = True
    enhance_contrast: bool = True
    adaptive_threshold: bool = True
    max_width: int = 3000
    max_height: int = 3000
    preserve_aspect_ratio: bool = False

    def __post_init__(self):
        if not self.scale > 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if self.max_width <= 0 or self.max_height <= 0:
            raise ValueError(
                f"max dimensions must be positive, got {self.max_width}x{self.max_height}"
            )

    def with_overrides(self, **changes) -> 'EnhancementOptions':
        return replace(self, **changes)

    @property
    def enabled_filters(self) -> List[str]:
        """Names of the enabled filter stages, in pipeline order."""
        stages = [
            ("denoise", self.denoise),
            ("sharpen", self.sharpen),
            ("enhance_contrast", self.enhance_contrast),
            ("adaptive_threshold", self.adaptive_threshold),
        ]
        return [name for name, enabled in stages if enabled]


# ============================================================================
# Geometry and Resampling
# ============================================================================

def _ceil(value: float) -> int:
    # Absorb float noise such as 100 * 1.1 == 110.00000000000001
    return math.ceil(round(value, 6))


def scaled_dimensions(
    width: int,
    height: int,
    options: EnhancementOptions
) -> Tuple[int, int]:
    """
    Output size for a source of ``width`` x ``height``.

    Each axis is ``min(ceil(dim * scale), max_dim)``. With
    ``preserve_aspect_ratio`` a single factor is shrunk until both axes fit,
    so the aspect ratio survives to within one pixel.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid source dimensions: {width}x{height}")

    if options.preserve_aspect_ratio:
        factor = min(
            options.scale,
            options.max_width / width,
            options.max_height / height
        )
        factor_x = factor_y = factor
    else:
        factor_x = factor_y = options.scale

    out_width = max(1, min(_ceil(width * factor_x), options.max_width))
    out_height = max(1, min(_ceil(height * factor_y), options.max_height))
    return out_width, out_height


def resample(data: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize an RGBA buffer to ``width`` x ``height``.

    Bicubic when enlarging, pixel-area averaging when shrinking.
    """
    import cv2

    src_height, src_width = data.shape[:2]
    if (src_width, src_height) == (width, height):
        return data.copy()

    enlarging = width * height > src_width * src_height
    interpolation = cv2.INTER_CUBIC if enlarging else cv2.INTER_AREA
    resized = cv2.resize(data, (width, height), interpolation=interpolation)

    logger.debug(f"Resampled {src_width}x{src_height} -> {width}x{height}")
    return resized


def as_rgba(image: np.ndarray, bgr: bool = True) -> np.ndarray:
    """
    Convert an image array to the RGBA uint8 layout used by the pipeline.

    Args:
        image: Grayscale, 3-channel or 4-channel image
        bgr: If True, color input is in OpenCV's BGR(A) order

    Returns:
        RGBA buffer of shape (h, w, 4)
    """
    import cv2

    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.ndim == 3:
        channels = image.shape[2]
        if channels == 1:
            return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2RGBA)
        if channels == 3:
            code = cv2.COLOR_BGR2RGBA if bgr else cv2.COLOR_RGB2RGBA
            return cv2.cvtColor(image, code)
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA) if bgr else image.copy()

    raise ValueError(f"Unexpected image shape: {image.shape}")


# ============================================================================
# Main Enhancement Pipeline
# ============================================================================

def apply_filters(
    data: np.ndarray,
    options: EnhancementOptions,
    params: Optional[EnhancementDefaults] = None
) -> np.ndarray:
    """Run the enabled kernel filters in their fixed order."""
    params = params or EnhancementDefaults()
    processed = data

    if options.denoise:
        processed = filters.gaussian_blur(processed, sigma=params.denoise_sigma)

    if options.sharpen:
        processed = filters.sharpen(processed)

    if options.enhance_contrast:
        processed = filters.enhance_contrast(processed, block_size=params.contrast_block_size)

    if options.adaptive_threshold:
        processed = filters.adaptive_threshold(
            processed,
            radius=params.threshold_radius,
            c=params.threshold_c
        )

    return processed


def enhance_for_recognition(
    buffer: np.ndarray,
    options: Optional[EnhancementOptions] = None,
    params: Optional[EnhancementDefaults] = None
) -> np.ndarray:
    """
    Condition a page image for text recognition.

    The source is resampled to the scaled, ceiling-clamped size and then
    passed through the enabled filters. The source buffer is not modified.

    Args:
        buffer: RGBA source buffer
        options: Pipeline settings (defaults to EnhancementOptions())
        params: Kernel filter parameters

    Returns:
        New RGBA buffer
    """
    options = options or EnhancementOptions()

    if buffer.size == 0:
        logger.warning("Skipping enhancement of an empty pixel buffer")
        return buffer.copy()

    filters.check_buffer(buffer)
    height, width = buffer.shape[:2]
    out_width, out_height = scaled_dimensions(width, height, options)

    processed = resample(buffer, out_width, out_height)
    transformations = [f"resize_{width}x{height}_to_{out_width}x{out_height}"]

    processed = apply_filters(processed, options, params)
    transformations.extend(options.enabled_filters)

    logger.info(f"Preprocessing complete: {' -> '.join(transformations)}")
    return processed


def optimal_scale(width: int, height: int) -> float:
    """
    Heuristic scale factor targeting roughly 300 DPI-equivalent.

    The page is assumed to have an 8.5 inch diagonal and the current density
    is taken as ``sqrt(width * height) / 8.5``. This is not a calibrated DPI
    computation. The result is clamped to [1, 4] and rounded to one decimal.
    """
    if width <= 0 or height <= 0:
        return MAX_SCALE

    current_density = math.sqrt(width * height) / ASSUMED_PAGE_DIAGONAL
    scale = min(MAX_SCALE, max(MIN_SCALE, TARGET_DPI_EQUIVALENT / current_density))
    return math.floor(scale * 10 + 0.5) / 10
