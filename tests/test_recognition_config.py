"""
Tests for Tesseract configuration selection.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


MEDIUM_RES = (1000, 1000)   # 1.0 MP
HIGH_RES = (2000, 1500)     # 3.0 MP
LOW_RES = (500, 500)        # 0.25 MP

CONTENT_CLASSES = ["paragraph", "single_line", "multi_column", "handwriting"]
TEXT_SIZES = ["small", "medium", "large"]


class TestRecognitionConfig:
    """Test the config value type."""

    def test_unknown_key_rejected(self):
        """Misspelled parameter names fail at construction."""
        from page_ocr.utils.recognition_config import RecognitionConfig

        with pytest.raises(KeyError):
            RecognitionConfig({"textord_min_xhieght": "8"})

    def test_values_stored_as_strings(self):
        """Enum, bool and float values are normalized."""
        from page_ocr.utils.recognition_config import (
            PageSegMode, RecognitionConfig, TessParam
        )

        config = RecognitionConfig({
            TessParam.PAGESEG_MODE: PageSegMode.SINGLE_LINE,
            TessParam.DO_INVERT: False,
            "textord_noise_sizefraction": 0.30000000000000004,
        })

        assert config[TessParam.PAGESEG_MODE] == "7"
        assert config["tessedit_do_invert"] == "0"
        assert config[TessParam.NOISE_SIZE_FRACTION] == "0.3"

    def test_immutable(self):
        """Parameters cannot be changed in place."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG, TessParam

        with pytest.raises(TypeError):
            HIGH_QUALITY_CONFIG.params[TessParam.MIN_X_HEIGHT] = "1"

    def test_with_overrides_returns_new(self):
        """Overrides leave the original config alone."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG, TessParam

        changed = HIGH_QUALITY_CONFIG.with_overrides(
            {TessParam.MIN_X_HEIGHT: 4}, name="tiny"
        )

        assert changed.min_x_height == 4.0
        assert changed.name == "tiny"
        assert HIGH_QUALITY_CONFIG.min_x_height == 10.0

    def test_with_overrides_keywords(self):
        """Overrides accept parameter names as keywords."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG

        changed = HIGH_QUALITY_CONFIG.with_overrides(tessedit_char_whitelist="0123456789")

        assert changed["tessedit_char_whitelist"] == "0123456789"
        assert "tessedit_char_whitelist" not in HIGH_QUALITY_CONFIG

    def test_contains_unknown_key(self):
        """Membership tests with unknown names are simply False."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG

        assert "not_a_parameter" not in HIGH_QUALITY_CONFIG

    def test_tesseract_args(self):
        """Command-line arguments carry psm, oem and -c settings."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG

        args = HIGH_QUALITY_CONFIG.to_tesseract_args()

        assert args.startswith("--psm 3 --oem 1")
        assert "-c textord_min_xheight=10" in args
        assert "-c preserve_interword_spaces=1" in args
        # Empty blacklist is omitted
        assert "tessedit_char_blacklist" not in args

    def test_to_dict(self):
        """Plain dict view keyed by Tesseract names."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG

        data = HIGH_QUALITY_CONFIG.to_dict()

        assert data["tessedit_pageseg_mode"] == "3"
        assert data["tessedit_ocr_engine_mode"] == "1"
        assert len(data) == len(HIGH_QUALITY_CONFIG)

    def test_versioned(self):
        """Configs carry a version string."""
        from page_ocr.utils.recognition_config import CONFIG_VERSION, SMALL_TEXT_CONFIG

        assert SMALL_TEXT_CONFIG.version == CONFIG_VERSION


class TestProfiles:
    """Test the fixed profiles."""

    def test_small_text_profile(self):
        """Small text uses a single block and lower thresholds."""
        from page_ocr.utils.recognition_config import PageSegMode, SMALL_TEXT_CONFIG

        assert SMALL_TEXT_CONFIG.page_seg_mode == PageSegMode.SINGLE_BLOCK
        assert SMALL_TEXT_CONFIG.min_x_height == 6.0
        assert SMALL_TEXT_CONFIG.noise_size_fraction == 0.3

    def test_single_line_profile(self):
        """Single line mode drops heavy noise reduction."""
        from page_ocr.utils.recognition_config import PageSegMode, SINGLE_LINE_CONFIG

        assert SINGLE_LINE_CONFIG.page_seg_mode == PageSegMode.SINGLE_LINE
        assert SINGLE_LINE_CONFIG["textord_heavy_nr"] == "0"

    def test_handwriting_profile(self):
        """Handwriting uses the default engine mode."""
        from page_ocr.utils.recognition_config import EngineMode, HANDWRITING_CONFIG

        assert HANDWRITING_CONFIG.engine_mode == EngineMode.DEFAULT


class TestSelectConfig:
    """Test profile selection."""

    @pytest.mark.parametrize("content,expected_psm", [
        ("paragraph", 3),
        ("single_line", 7),
        ("multi_column", 4),
        ("handwriting", 3),
    ])
    def test_profile_by_content(self, content, expected_psm):
        """Content class picks the base profile."""
        from page_ocr.utils.recognition_config import select_config

        config = select_config(*MEDIUM_RES, "medium", content)

        assert int(config.page_seg_mode) == expected_psm

    def test_small_paragraph_text(self):
        """Small paragraph text gets the small-text profile."""
        from page_ocr.utils.recognition_config import SMALL_TEXT_CONFIG, select_config

        assert select_config(*MEDIUM_RES, "small", "paragraph") is SMALL_TEXT_CONFIG

    def test_medium_range_returns_base_profile(self):
        """No resolution adjustment in the medium range."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG, select_config

        assert select_config(*MEDIUM_RES) is HIGH_QUALITY_CONFIG

    def test_unknown_content_class_uses_general_profile(self):
        """Unrecognized content classes fall back to the general profile."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG, select_config

        assert select_config(*MEDIUM_RES, "medium", "poetry") is HIGH_QUALITY_CONFIG

    def test_enum_arguments(self):
        """Enums and their string values are interchangeable."""
        from page_ocr.utils.recognition_config import (
            ContentClass, TextSize, select_config
        )

        by_enum = select_config(*MEDIUM_RES, TextSize.SMALL, ContentClass.PARAGRAPH)
        by_str = select_config(*MEDIUM_RES, "small", "paragraph")

        assert by_enum is by_str

    def test_high_resolution(self):
        """Large images relax noise fraction and minimum x-height."""
        from page_ocr.utils.recognition_config import select_config

        config = select_config(*HIGH_RES)

        assert config.min_x_height == 8.0
        assert config.noise_size_fraction == pytest.approx(0.4)
        assert config.name == "high_quality+high_res"

    def test_low_resolution(self):
        """Small images tighten thresholds and disable heavy noise reduction."""
        from page_ocr.utils.recognition_config import select_config

        config = select_config(*LOW_RES)

        assert config.min_x_height == 12.0
        assert config.noise_size_fraction == pytest.approx(0.8)
        assert config["textord_heavy_nr"] == "0"

    @pytest.mark.parametrize("content", CONTENT_CLASSES)
    @pytest.mark.parametrize("size", TEXT_SIZES)
    def test_high_res_x_height_strictly_lower(self, content, size):
        """High resolution always lowers the minimum x-height."""
        from page_ocr.utils.recognition_config import select_config

        high = select_config(*HIGH_RES, size, content)
        medium = select_config(*MEDIUM_RES, size, content)

        assert high.min_x_height < medium.min_x_height

    @pytest.mark.parametrize("content", CONTENT_CLASSES)
    def test_low_res_x_height_higher(self, content):
        """Low resolution raises the minimum x-height."""
        from page_ocr.utils.recognition_config import select_config

        low = select_config(*LOW_RES, "medium", content)
        medium = select_config(*MEDIUM_RES, "medium", content)

        assert low.min_x_height > medium.min_x_height

    def test_profiles_not_mutated(self):
        """Selection never alters the shared profiles."""
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG, select_config

        before = HIGH_QUALITY_CONFIG.to_dict()
        select_config(*HIGH_RES)
        select_config(*LOW_RES)

        assert HIGH_QUALITY_CONFIG.to_dict() == before

    def test_describe_config(self):
        """Summary exposes the main knobs."""
        from page_ocr.utils.recognition_config import describe_config, select_config

        summary = describe_config(select_config(*LOW_RES, "medium", "single_line"), "test")

        assert summary["profile"] == "single_line+low_res"
        assert summary["page_seg_mode"] == "SINGLE_LINE"
        assert summary["min_x_height"] == 12.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
