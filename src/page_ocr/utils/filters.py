"""
Kernel filters for conditioning page images before recognition.

Every filter takes an RGBA pixel buffer (``uint8`` array of shape
``(height, width, 4)``), never modifies it, and returns a new buffer of the
same shape. Color channels are processed; alpha is copied through.

Provides:
- Gaussian blur (light denoising)
- Sharpening (3x3 Laplacian-style kernel)
- Block-local contrast equalization
- Adaptive thresholding blended toward black/white
"""

import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


SHARPEN_KERNEL = np.array([
    [0, -1, 0],
    [-1, 5, -1],
    [0, -1, 0],
], dtype=np.float32)

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


# ============================================================================
# Helpers
# ============================================================================

def check_buffer(data: np.ndarray) -> None:
    """Raise ValueError unless ``data`` is a non-empty RGBA uint8 buffer."""
    if not isinstance(data, np.ndarray):
        raise ValueError(f"Expected numpy array, got {type(data).__name__}")
    if data.ndim != 3 or data.shape[2] != 4:
        raise ValueError(f"Expected RGBA buffer of shape (h, w, 4), got {data.shape}")
    if data.dtype != np.uint8:
        raise ValueError(f"Expected uint8 buffer, got {data.dtype}")
    if data.shape[0] == 0 or data.shape[1] == 0:
        raise ValueError("Pixel buffer is empty")


def round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Round and clamp to [0, 255]."""
    return np.clip(round_half_up(values), 0, 255).astype(np.uint8)


def luminance(data: np.ndarray) -> np.ndarray:
    """Per-pixel luminance as float64, shape ``(height, width)``."""
    return data[:, :, :3].astype(np.float64) @ LUMA_WEIGHTS


def gaussian_kernel(sigma: float) -> np.ndarray:
    """
    1-D Gaussian kernel of radius ``ceil(3 * sigma)`` normalized to sum to 1.
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    radius = math.ceil(sigma * 3)
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets * offsets) / (2 * sigma * sigma))
    return kernel / kernel.sum()


# ============================================================================
# Filters
# ============================================================================

def gaussian_blur(data: np.ndarray, sigma: float = 0.5) -> np.ndarray:
    """
    Separable Gaussian blur with edge-clamped sampling.

    A horizontal pass followed by a vertical pass with the same kernel.
    Coordinates outside the image are clamped to the nearest edge pixel.

    Args:
        data: RGBA buffer
        sigma: Standard deviation; keep small so text strokes survive

    Returns:
        Blurred RGBA buffer
    """
    import cv2

    check_buffer(data)
    kernel = gaussian_kernel(sigma).astype(np.float32)

    rgb = data[:, :, :3].astype(np.float32)
    blurred = cv2.sepFilter2D(
        rgb, cv2.CV_32F, kernel, kernel,
        borderType=cv2.BORDER_REPLICATE
    )

    result = data.copy()
    result[:, :, :3] = to_uint8(blurred)

    logger.debug(f"Applied Gaussian blur (sigma={sigma}, taps={kernel.size})")
    return result


def sharpen(data: np.ndarray) -> np.ndarray:
    """
    Sharpen with a 3x3 kernel (center 5, edge neighbours -1, corners 0).

    Border pixels are sampled edge-clamped, so the whole image is filtered.
    """
    import cv2

    check_buffer(data)
    rgb = data[:, :, :3].astype(np.float32)
    sharpened = cv2.filter2D(rgb, -1, SHARPEN_KERNEL, borderType=cv2.BORDER_REPLICATE)

    result = data.copy()
    result[:, :, :3] = to_uint8(sharpened)

    logger.debug("Applied 3x3 sharpen")
    return result


def enhance_contrast(data: np.ndarray, block_size: int = 64) -> np.ndarray:
    """
    Per-tile histogram equalization that roughly preserves hue.

    The image is cut into ``block_size`` square tiles. For each tile a
    256-bin luminance histogram is equalized, and every pixel's channels are
    scaled by ``equalized / original`` luminance. Tiles are not blended, so
    tile edges may show.

    Args:
        data: RGBA buffer
        block_size: Tile edge length in pixels

    Returns:
        Contrast-enhanced RGBA buffer
    """
    check_buffer(data)
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")

    height, width = data.shape[:2]
    result = data.copy()
    gray = round_half_up(luminance(data)).astype(np.int64)

    for by in range(0, height, block_size):
        for bx in range(0, width, block_size):
            tile_gray = gray[by:by + block_size, bx:bx + block_size]

            histogram = np.bincount(tile_gray.ravel(), minlength=256)
            cdf = np.cumsum(histogram)
            cdf = round_half_up(cdf / tile_gray.size * 255)

            factor = cdf[tile_gray] / np.maximum(1, tile_gray)
            tile = data[by:by + block_size, bx:bx + block_size, :3].astype(np.float64)
            result[by:by + block_size, bx:bx + block_size, :3] = to_uint8(
                tile * factor[:, :, np.newaxis]
            )

    logger.debug(f"Applied block contrast equalization (block={block_size})")
    return result


def adaptive_threshold(data: np.ndarray, radius: int = 16, c: float = 5.0) -> np.ndarray:
    """
    Local-mean thresholding that keeps grayscale detail.

    Each pixel is compared with the mean luminance of the square window of
    half-width ``radius`` around it (clipped at the image edges) minus
    ``c``. Pixels above the threshold are brightened by 1.2, the rest are
    darkened by 0.8. Output color channels carry the resulting gray value.

    Window sums come from a summed-area table, so the cost does not depend
    on ``radius``.

    Args:
        data: RGBA buffer
        radius: Half-width of the neighbourhood
        c: Constant subtracted from the local mean

    Returns:
        Thresholded RGBA buffer
    """
    import cv2

    check_buffer(data)
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")

    height, width = data.shape[:2]
    gray = luminance(data)

    # integral[y, x] == gray[:y, :x].sum()
    integral = cv2.integral(gray, sdepth=cv2.CV_64F)

    rows = np.arange(height)
    cols = np.arange(width)
    y0 = np.clip(rows - radius, 0, height)
    y1 = np.clip(rows + radius + 1, 0, height)
    x0 = np.clip(cols - radius, 0, width)
    x1 = np.clip(cols + radius + 1, 0, width)

    sums = (
        integral[np.ix_(y1, x1)]
        - integral[np.ix_(y0, x1)]
        - integral[np.ix_(y1, x0)]
        + integral[np.ix_(y0, x0)]
    )
    counts = np.outer(y1 - y0, x1 - x0)
    threshold = sums / counts - c

    enhanced = np.where(
        gray > threshold,
        np.minimum(255.0, gray * 1.2),
        np.maximum(0.0, gray * 0.8),
    )

    result = data.copy()
    result[:, :, :3] = to_uint8(enhanced)[:, :, np.newaxis]

    logger.debug(f"Applied adaptive threshold (radius={radius}, c={c})")
    return result
