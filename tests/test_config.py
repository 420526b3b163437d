"""
Tests for pipeline configuration.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestGetConfig:
    """Test defaults and environment overrides."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("PAGE_OCR_DEBUG", "PAGE_OCR_LANG", "PAGE_OCR_RENDER_SCALE"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        from page_ocr.config import get_config

        config = get_config()

        assert config.debug_mode is False
        assert config.extraction.render_scale == 2.5
        assert config.extraction.language == "eng"
        assert config.grouping.line_tolerance == 5.0
        assert config.enhancement.max_width == 3000

    def test_environment_overrides(self, monkeypatch):
        from page_ocr.config import get_config

        monkeypatch.setenv("PAGE_OCR_DEBUG", "true")
        monkeypatch.setenv("PAGE_OCR_LANG", "deu")
        monkeypatch.setenv("PAGE_OCR_RENDER_SCALE", "3")

        config = get_config()

        assert config.debug_mode is True
        assert config.extraction.language == "deu"
        assert config.extraction.render_scale == 3.0

    def test_invalid_render_scale_ignored(self, monkeypatch):
        from page_ocr.config import get_config

        monkeypatch.setenv("PAGE_OCR_RENDER_SCALE", "huge")

        assert get_config().extraction.render_scale == 2.5

    def test_instances_independent(self):
        """Each call returns a fresh configuration."""
        from page_ocr.config import get_config

        first = get_config()
        first.extraction.render_scale = 9.0

        assert get_config().extraction.render_scale == 2.5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
