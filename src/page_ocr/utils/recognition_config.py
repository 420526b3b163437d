"""
Recognition engine configuration for Tesseract.

Provides:
- TessParam, a closed set of known Tesseract parameter names
- RecognitionConfig, an immutable validated parameter set
- Fixed profiles for common content types
- select_config(), mapping image size and content shape to a profile
"""

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Type, TypeVar, Union

logger = logging.getLogger(__name__)

CONFIG_VERSION = "1"


# ============================================================================
# Enums
# ============================================================================

class PageSegMode(IntEnum):
    """Tesseract page segmentation modes used by the profiles."""
    AUTO = 3
    SINGLE_COLUMN = 4
    SINGLE_BLOCK = 6
    SINGLE_LINE = 7


class EngineMode(IntEnum):
    """Tesseract OCR engine modes."""
    TESSERACT_ONLY = 0
    LSTM_ONLY = 1
    TESSERACT_LSTM_COMBINED = 2
    DEFAULT = 3


class TextSize(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ContentClass(Enum):
    PARAGRAPH = "paragraph"
    SINGLE_LINE = "single_line"
    MULTI_COLUMN = "multi_column"
    HANDWRITING = "handwriting"


class TessParam(Enum):
    """Every Tesseract parameter a RecognitionConfig may carry."""
    PAGESEG_MODE = "tessedit_pageseg_mode"
    OCR_ENGINE_MODE = "tessedit_ocr_engine_mode"
    CHAR_BLACKLIST = "tessedit_char_blacklist"
    CHAR_WHITELIST = "tessedit_char_whitelist"
    PRESERVE_INTERWORD_SPACES = "preserve_interword_spaces"
    DO_INVERT = "tessedit_do_invert"
    CREATE_HOCR = "tessedit_create_hocr"
    CREATE_TSV = "tessedit_create_tsv"
    WRITE_IMAGES = "tessedit_write_images"
    # Dictionaries
    LOAD_SYSTEM_DAWG = "load_system_dawg"
    LOAD_FREQ_DAWG = "load_freq_dawg"
    LOAD_UNAMBIG_DAWG = "load_unambig_dawg"
    LOAD_PUNC_DAWG = "load_punc_dawg"
    LOAD_NUMBER_DAWG = "load_number_dawg"
    LOAD_BIGRAM_DAWG = "load_bigram_dawg"
    # Classifier
    CLASSIFY_ENABLE_LEARNING = "classify_enable_learning"
    CLASSIFY_ENABLE_ADAPTIVE_MATCHER = "classify_enable_adaptive_matcher"
    CLASSIFY_ADAPT_PROTO_THRESHOLD = "classify_adapt_proto_threshold"
    CLASSIFY_ADAPT_FEATURE_THRESHOLD = "classify_adapt_feature_threshold"
    CLASSIFY_CLASS_PRUNER_THRESHOLD = "classify_class_pruner_threshold"
    CLASSIFY_CLASS_PRUNER_MULTIPLIER = "classify_class_pruner_multiplier"
    # Text ordering / noise
    HEAVY_NOISE_REDUCTION = "textord_heavy_nr"
    NOISE_SIZE_FRACTION = "textord_noise_sizefraction"
    NOISE_TRANSLIMIT = "textord_noise_translimit"
    NOISE_NORMRATIO = "textord_noise_normratio"
    MIN_X_HEIGHT = "textord_min_xheight"
    NOISE_REJECT_WORDS = "textord_noise_rejwords"
    NOISE_REJECT_ROWS = "textord_noise_rejrows"
    TABFIND_SHOW_VLINES = "textord_tabfind_show_vlines"
    TABFIND_SHOW_INITIAL_PARTITIONS = "textord_tabfind_show_initial_partitions"
    USE_CJK_FP_MODEL = "textord_use_cjk_fp_model"
    # Edges / word recognizer
    EDGES_USE_NEW_OUTLINE_COMPLEXITY = "edges_use_new_outline_complexity"
    EDGES_DEBUG = "edges_debug"
    WORDREC_ENABLE_ASSOC = "wordrec_enable_assoc"
    WORDREC_WORST_STATE = "wordrec_worst_state"

    @classmethod
    def from_key(cls, key: Union['TessParam', str]) -> 'TessParam':
        """Resolve a parameter name, raising KeyError for unknown names."""
        if isinstance(key, cls):
            return key
        try:
            return cls(key)
        except ValueError:
            raise KeyError(f"Unknown recognition parameter: {key!r}") from None


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float):
        return f"{round(value, 4):g}"
    return str(value)


# ============================================================================
# RecognitionConfig
# ============================================================================

@dataclass(frozen=True)
class RecognitionConfig:
    """
    Immutable set of Tesseract parameters.

    Keys are validated against TessParam when the config is built, so a
    misspelled parameter name fails immediately instead of being ignored by
    the engine. Values are stored as Tesseract expects them, as strings.
    """
    params: Mapping[TessParam, str]
    name: str = "custom"
    version: str = CONFIG_VERSION

    def __post_init__(self):
        validated = {
            TessParam.from_key(key): _format_value(value)
            for key, value in dict(self.params).items()
        }
        object.__setattr__(self, "params", MappingProxyType(validated))

    def __getitem__(self, key: Union[TessParam, str]) -> str:
        return self.params[TessParam.from_key(key)]

    def __contains__(self, key: Union[TessParam, str]) -> bool:
        try:
            return TessParam.from_key(key) in self.params
        except KeyError:
            return False

    def __iter__(self) -> Iterator[TessParam]:
        return iter(self.params)

    def __len__(self) -> int:
        return len(self.params)

    def get(self, key: Union[TessParam, str], default: Optional[str] = None) -> Optional[str]:
        return self.params.get(TessParam.from_key(key), default)

    def with_overrides(
        self,
        overrides: Optional[Mapping[Union[TessParam, str], Any]] = None,
        name: Optional[str] = None,
        **params: Any
    ) -> 'RecognitionConfig':
        """Return a new config with some parameters replaced."""
        merged: Dict[Union[TessParam, str], Any] = dict(self.params)
        for key, value in {**(overrides or {}), **params}.items():
            merged[TessParam.from_key(key)] = value
        return RecognitionConfig(merged, name=name or self.name, version=self.version)

    @property
    def page_seg_mode(self) -> PageSegMode:
        return PageSegMode(int(self.params.get(TessParam.PAGESEG_MODE, PageSegMode.AUTO)))

    @property
    def engine_mode(self) -> EngineMode:
        return EngineMode(int(self.params.get(TessParam.OCR_ENGINE_MODE, EngineMode.DEFAULT)))

    @property
    def min_x_height(self) -> Optional[float]:
        value = self.params.get(TessParam.MIN_X_HEIGHT)
        return float(value) if value is not None else None

    @property
    def noise_size_fraction(self) -> Optional[float]:
        value = self.params.get(TessParam.NOISE_SIZE_FRACTION)
        return float(value) if value is not None else None

    def to_dict(self) -> Dict[str, str]:
        return {key.value: value for key, value in self.params.items()}

    def to_tesseract_args(self) -> str:
        """Command-line config string for pytesseract."""
        args = [
            f"--psm {int(self.page_seg_mode)}",
            f"--oem {int(self.engine_mode)}",
        ]
        for key, value in self.params.items():
            if key in (TessParam.PAGESEG_MODE, TessParam.OCR_ENGINE_MODE):
                continue
            # Tesseract rejects "-c name=" with an empty value
            if value == "":
                continue
            args.append(f"-c {key.value}={value}")
        return " ".join(args)


# ============================================================================
# Profiles
# ============================================================================

HIGH_QUALITY_CONFIG = RecognitionConfig({
    TessParam.PAGESEG_MODE: PageSegMode.AUTO,
    TessParam.OCR_ENGINE_MODE: EngineMode.LSTM_ONLY,
    TessParam.CHAR_BLACKLIST: "",
    TessParam.PRESERVE_INTERWORD_SPACES: "1",

    TessParam.DO_INVERT: "0",
    TessParam.CREATE_HOCR: "0",
    TessParam.CREATE_TSV: "0",
    TessParam.WRITE_IMAGES: "0",

    TessParam.LOAD_SYSTEM_DAWG: "1",
    TessParam.LOAD_FREQ_DAWG: "1",
    TessParam.LOAD_UNAMBIG_DAWG: "1",
    TessParam.LOAD_PUNC_DAWG: "1",
    TessParam.LOAD_NUMBER_DAWG: "1",
    TessParam.LOAD_BIGRAM_DAWG: "1",

    TessParam.CLASSIFY_ENABLE_LEARNING: "1",
    TessParam.CLASSIFY_ENABLE_ADAPTIVE_MATCHER: "1",
    TessParam.HEAVY_NOISE_REDUCTION: "1",

    TessParam.NOISE_SIZE_FRACTION: "0.5",
    TessParam.NOISE_TRANSLIMIT: "16.0",
    TessParam.NOISE_NORMRATIO: "2.0",

    TessParam.MIN_X_HEIGHT: "10",
    TessParam.NOISE_REJECT_WORDS: "1",
    TessParam.NOISE_REJECT_ROWS: "1",
}, name="high_quality")

# Small or faded text
SMALL_TEXT_CONFIG = HIGH_QUALITY_CONFIG.with_overrides({
    TessParam.PAGESEG_MODE: PageSegMode.SINGLE_BLOCK,
    TessParam.MIN_X_HEIGHT: "6",
    TessParam.NOISE_SIZE_FRACTION: "0.3",
    TessParam.CLASSIFY_ADAPT_PROTO_THRESHOLD: "230",
    TessParam.CLASSIFY_ADAPT_FEATURE_THRESHOLD: "230",
    TessParam.EDGES_USE_NEW_OUTLINE_COMPLEXITY: "1",
    TessParam.EDGES_DEBUG: "0",
    TessParam.WORDREC_ENABLE_ASSOC: "1",
    TessParam.WORDREC_WORST_STATE: "1",
}, name="small_text")

# Titles, labels and other single lines
SINGLE_LINE_CONFIG = HIGH_QUALITY_CONFIG.with_overrides({
    TessParam.PAGESEG_MODE: PageSegMode.SINGLE_LINE,
    TessParam.HEAVY_NOISE_REDUCTION: "0",
    TessParam.NOISE_REJECT_ROWS: "0",
    TessParam.PRESERVE_INTERWORD_SPACES: "1",
}, name="single_line")

MULTI_COLUMN_CONFIG = HIGH_QUALITY_CONFIG.with_overrides({
    TessParam.PAGESEG_MODE: PageSegMode.SINGLE_COLUMN,
    TessParam.TABFIND_SHOW_VLINES: "0",
    TessParam.TABFIND_SHOW_INITIAL_PARTITIONS: "0",
    TessParam.USE_CJK_FP_MODEL: "0",
}, name="multi_column")

HANDWRITING_CONFIG = HIGH_QUALITY_CONFIG.with_overrides({
    TessParam.OCR_ENGINE_MODE: EngineMode.DEFAULT,
    TessParam.CLASSIFY_ADAPT_PROTO_THRESHOLD: "200",
    TessParam.CLASSIFY_ADAPT_FEATURE_THRESHOLD: "200",
    TessParam.WORDREC_ENABLE_ASSOC: "1",
    TessParam.CLASSIFY_CLASS_PRUNER_THRESHOLD: "200",
    TessParam.CLASSIFY_CLASS_PRUNER_MULTIPLIER: "15",
}, name="handwriting")


# ============================================================================
# Selection
# ============================================================================

HIGH_RES_PIXELS = 2_000_000
LOW_RES_PIXELS = 500_000

# Resolution adjustments, relative to the base profile
HIGH_RES_X_HEIGHT_DELTA = -2
HIGH_RES_NOISE_DELTA = -0.1
LOW_RES_X_HEIGHT_DELTA = 2
LOW_RES_NOISE_DELTA = 0.3

MIN_X_HEIGHT_FLOOR = 1
MIN_NOISE_FRACTION = 0.05

E = TypeVar("E", bound=Enum)


def _coerce(enum_type: Type[E], value: Union[E, str, None]) -> Optional[E]:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return None


def _adjust_for_resolution(
    config: RecognitionConfig,
    x_height_delta: int,
    noise_delta: float,
    suffix: str,
    extra: Optional[Mapping[TessParam, Any]] = None
) -> RecognitionConfig:
    x_height = max(MIN_X_HEIGHT_FLOOR, int(config.min_x_height) + x_height_delta)
    noise = max(MIN_NOISE_FRACTION, config.noise_size_fraction + noise_delta)
    return config.with_overrides(
        {
            TessParam.MIN_X_HEIGHT: x_height,
            TessParam.NOISE_SIZE_FRACTION: noise,
            **(extra or {}),
        },
        name=f"{config.name}+{suffix}"
    )


def select_config(
    image_width: int,
    image_height: int,
    text_size: Union[TextSize, str] = TextSize.MEDIUM,
    content_class: Union[ContentClass, str] = ContentClass.PARAGRAPH
) -> RecognitionConfig:
    """
    Choose Tesseract parameters for an image.

    A base profile is picked by content class (paragraph content picks the
    small-text profile for small text). Large images then relax the noise
    size fraction and minimum x-height; small images tighten both and turn
    off heavy noise reduction so thin strokes are not discarded as noise.
    Unrecognized values fall back to the general profile.

    Args:
        image_width: Image width in pixels
        image_height: Image height in pixels
        text_size: Estimated text size class
        content_class: Estimated layout class

    Returns:
        RecognitionConfig for the image
    """
    content = _coerce(ContentClass, content_class)
    size = _coerce(TextSize, text_size) or TextSize.MEDIUM

    if content is ContentClass.SINGLE_LINE:
        config = SINGLE_LINE_CONFIG
    elif content is ContentClass.MULTI_COLUMN:
        config = MULTI_COLUMN_CONFIG
    elif content is ContentClass.HANDWRITING:
        config = HANDWRITING_CONFIG
    else:
        if content is None:
            logger.debug(f"Unknown content class {content_class!r}, using general profile")
        config = SMALL_TEXT_CONFIG if size is TextSize.SMALL else HIGH_QUALITY_CONFIG

    pixel_count = max(0, image_width) * max(0, image_height)

    if pixel_count > HIGH_RES_PIXELS:
        return _adjust_for_resolution(
            config, HIGH_RES_X_HEIGHT_DELTA, HIGH_RES_NOISE_DELTA, "high_res"
        )
    if pixel_count < LOW_RES_PIXELS:
        return _adjust_for_resolution(
            config, LOW_RES_X_HEIGHT_DELTA, LOW_RES_NOISE_DELTA, "low_res",
            extra={TessParam.HEAVY_NOISE_REDUCTION: "0"}
        )

    return config


def describe_config(config: RecognitionConfig, context: str) -> Dict[str, Any]:
    """Log the main knobs of a config and return them."""
    summary = {
        "profile": config.name,
        "page_seg_mode": config.page_seg_mode.name,
        "engine_mode": config.engine_mode.name,
        "min_x_height": config.min_x_height,
        "noise_size_fraction": config.noise_size_fraction,
    }
    logger.info(f"Applying OCR configuration for {context}: {summary}")
    return summary
