"""Log-mel feature extraction package."""

from .config import ConfigurationError, FeatureConfig
from .extractor import (
    FeatureMatrix,
    MelSpectrogramExtractor,
    extract_features,
    frame_count,
)
from .filterbank import build_mel_filterbank

__all__ = [
    "ConfigurationError",
    "FeatureConfig",
    "FeatureMatrix",
    "MelSpectrogramExtractor",
    "build_mel_filterbank",
    "extract_features",
    "frame_count",
]
