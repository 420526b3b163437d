"""
Configuration and constants for the page extraction pipeline.

This module provides:
- Global logging configuration
- Enhancement, grouping and extraction parameters
- Environment overrides
"""

import os
from dataclasses import dataclass, field
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("page_ocr")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class EnhancementDefaults:
    """Image enhancement configuration."""
    max_width: int = 3000
    max_height: int = 3000
    # High-quality loading of image files
    load_scale: float = 3.0
    load_max_dim: int = 4000
    # Kernel filter parameters
    denoise_sigma: float = 0.5
    contrast_block_size: int = 64
    threshold_radius: int = 16
    threshold_c: float = 5.0


@dataclass
class GroupingConfig:
    """Structured-text grouping configuration."""
    # Vertical tolerance for a line; the join check allows twice this
    line_tolerance: float = 5.0
    # Horizontal slack on each side of a region's span
    horizontal_slack: float = 50.0
    min_region_height: float = 20.0


@dataclass
class ExtractionConfig:
    """Page extraction configuration."""
    render_scale: float = 2.5
    # Above this pixel count the cheaper enhancement profile is used
    large_image_pixels: int = 1_000_000
    large_image_scale: float = 1.5
    max_scale: float = 2.0
    language: str = "eng"
    text_size: str = "medium"
    content_class: str = "paragraph"


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    enhancement: EnhancementDefaults = field(default_factory=EnhancementDefaults)
    grouping: GroupingConfig = field(default_factory=GroupingConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)

    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("PAGE_OCR_DEBUG", "").lower() == "true":
        config.debug_mode = True
        logger.setLevel(logging.DEBUG)

    language = os.environ.get("PAGE_OCR_LANG")
    if language:
        config.extraction.language = language

    render_scale = os.environ.get("PAGE_OCR_RENDER_SCALE")
    if render_scale:
        try:
            config.extraction.render_scale = float(render_scale)
        except ValueError:
            logger.warning(f"Ignoring invalid PAGE_OCR_RENDER_SCALE: {render_scale!r}")

    return config
