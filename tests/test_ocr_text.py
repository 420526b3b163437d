"""
Tests for text recognition.
"""

import asyncio
import pytest
import numpy as np
import sys
from pathlib import Path
from types import SimpleNamespace

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from page_ocr.utils.ocr_text import Recognizer, RecognitionResult


class FakeRecognizer(Recognizer):
    """Returns canned text and records what it was given."""

    def __init__(self, text="sample", confidence=0.9, fail_on=None):
        self.text = text
        self.confidence = confidence
        self.fail_on = fail_on or set()
        self.calls = 0
        self.shapes = []
        self.configs = []

    async def recognize(self, buffer, config):
        self.calls += 1
        self.shapes.append(buffer.shape)
        self.configs.append(config)
        if self.calls in self.fail_on:
            raise RuntimeError("engine crashed")
        return RecognitionResult(text=f" {self.text} ", confidence=self.confidence)


@pytest.fixture
def page():
    """A 200x100 white page."""
    return np.full((100, 200, 4), 255, dtype=np.uint8)


def make_region(x, y, width, height):
    from page_ocr.utils.regions import BoundingBox, Region, RegionType
    return Region(page=0, region_type=RegionType.PARAGRAPH, bbox=BoundingBox(x, y, width, height))


class TestRecognizeRegions:
    """Test region-by-region recognition."""

    def test_padded_crop(self, page):
        """Each region is cropped with padding, clamped to the image."""
        from page_ocr.utils.ocr_text import recognize_regions

        recognizer = FakeRecognizer()
        regions = [make_region(20, 20, 50, 30), make_region(0, 0, 30, 30)]

        asyncio.run(recognize_regions(page, 1, regions, recognizer))

        assert recognizer.shapes == [(50, 70, 4), (40, 40, 4)]

    def test_text_and_confidence_filled(self, page):
        """Results carry stripped text, confidence and the page index."""
        from page_ocr.utils.ocr_text import recognize_regions

        region = make_region(20, 20, 50, 30)
        results = asyncio.run(recognize_regions(page, 2, [region], FakeRecognizer("abc", 0.75)))

        assert len(results) == 1
        assert results[0].text == "abc"
        assert results[0].confidence == 0.75
        assert results[0].page == 2
        assert results[0].region_id == region.region_id
        assert region.text is None

    def test_invalid_region_gets_empty_text(self, page):
        """Zero-sized regions are not sent to the recognizer."""
        from page_ocr.utils.ocr_text import recognize_regions

        recognizer = FakeRecognizer()
        results = asyncio.run(recognize_regions(page, 0, [make_region(10, 10, 0, 20)], recognizer))

        assert recognizer.calls == 0
        assert results[0].text == ""

    def test_failure_isolated_to_region(self, page):
        """One failing region does not stop the others."""
        from page_ocr.utils.ocr_text import recognize_regions

        recognizer = FakeRecognizer(fail_on={1})
        regions = [make_region(20, 20, 50, 30), make_region(100, 20, 50, 30)]
        results = asyncio.run(recognize_regions(page, 0, regions, recognizer))

        assert results[0].text == "[OCR Error: engine crashed]"
        assert results[0].confidence == 0.0
        assert results[1].text == "sample"

    def test_confidence_clamped(self, page):
        """Out-of-range engine confidences are clamped to [0, 1]."""
        from page_ocr.utils.ocr_text import recognize_regions

        results = asyncio.run(
            recognize_regions(page, 0, [make_region(20, 20, 50, 30)], FakeRecognizer(confidence=87.0))
        )

        assert results[0].confidence == 1.0

    def test_default_config_single_block(self, page):
        """Regions are recognized as single text blocks by default."""
        from page_ocr.utils.ocr_text import recognize_regions
        from page_ocr.utils.recognition_config import PageSegMode

        recognizer = FakeRecognizer()
        asyncio.run(recognize_regions(page, 0, [make_region(20, 20, 50, 30)], recognizer))

        assert recognizer.configs[0].page_seg_mode == PageSegMode.SINGLE_BLOCK

    def test_explicit_config_used(self, page):
        """A given config is passed through unchanged."""
        from page_ocr.utils.ocr_text import recognize_regions
        from page_ocr.utils.recognition_config import SINGLE_LINE_CONFIG

        recognizer = FakeRecognizer()
        asyncio.run(recognize_regions(
            page, 0, [make_region(20, 20, 50, 30)], recognizer, config=SINGLE_LINE_CONFIG
        ))

        assert recognizer.configs[0] is SINGLE_LINE_CONFIG


class TestTesseractRecognizer:
    """Test the Tesseract recognizer."""

    def test_line_grouping(self):
        """Words are grouped into lines by block, paragraph and line numbers."""
        from page_ocr.utils.ocr_text import TesseractRecognizer
        from page_ocr.utils.recognition_config import HIGH_QUALITY_CONFIG

        data = {
            'text': ['Hello', 'world', '', 'Second', 'line'],
            'conf': [90, 80, -1, 70, 60],
            'block_num': [1, 1, 1, 1, 1],
            'par_num': [1, 1, 1, 1, 1],
            'line_num': [1, 1, 1, 2, 2],
        }
        calls = {}

        def image_to_data(image, lang, config, output_type):
            calls['config'] = config
            calls['shape'] = image.shape
            return data

        recognizer = TesseractRecognizer.__new__(TesseractRecognizer)
        recognizer.language = "eng"
        recognizer.pytesseract = SimpleNamespace(
            image_to_data=image_to_data,
            Output=SimpleNamespace(DICT="dict")
        )

        buffer = np.full((30, 40, 4), 255, dtype=np.uint8)
        result = asyncio.run(recognizer.recognize(buffer, HIGH_QUALITY_CONFIG))

        assert result.text == "Hello world\nSecond line"
        assert result.confidence == pytest.approx(0.75)
        assert [line.confidence for line in result.lines] == pytest.approx([0.85, 0.65])
        assert result.engine_used == "tesseract"
        assert calls['shape'] == (30, 40, 3)
        assert calls['config'] == HIGH_QUALITY_CONFIG.to_tesseract_args()

    def test_real_tesseract(self):
        """Recognize rendered text (requires Tesseract)."""
        import cv2
        from page_ocr.utils.ocr_text import TesseractRecognizer
        from page_ocr.utils.recognition_config import select_config

        try:
            recognizer = TesseractRecognizer()
        except ImportError:
            pytest.skip("Tesseract not available")

        img = np.full((100, 400, 3), 255, dtype=np.uint8)
        cv2.putText(img, "HELLO", (20, 70), cv2.FONT_HERSHEY_SIMPLEX, 2, (0, 0, 0), 4)
        buffer = cv2.cvtColor(img, cv2.COLOR_RGB2RGBA)

        result = recognizer.recognize_sync(buffer, select_config(400, 100, "medium", "single_line"))

        assert isinstance(result, RecognitionResult)
        assert 0.0 <= result.confidence <= 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
