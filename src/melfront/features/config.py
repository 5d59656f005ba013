"""Feature extraction configuration.

Builds on `melfront.global_config`. Defaults reproduce the QuartzNet 15x5
preprocessor: 20 ms Hann window, 10 ms hop, 512-point FFT, 64 mel bands,
time axis padded to a multiple of 16.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..global_config import TARGET_SAMPLE_RATE


class ConfigurationError(ValueError):
    """Raised when a feature configuration is invalid or cannot be loaded."""


@dataclass(frozen=True)
class FeatureConfig:
    """Immutable log-mel front-end settings."""

    sample_rate: int = TARGET_SAMPLE_RATE
    window_seconds: float = 0.02
    stride_seconds: float = 0.01
    fft_size: int = 512
    mel_bands: int = 64
    block_alignment: int = 16
    dither: float = 1e-5
    normalize_per_feature: bool = True
    f_min: float = 0.0
    f_max: float | None = None

    @property
    def window_length(self) -> int:
        """Analysis window length in samples."""
        return int(round(self.window_seconds * self.sample_rate))

    @property
    def hop_length(self) -> int:
        """Frame stride in samples."""
        return int(round(self.stride_seconds * self.sample_rate))

    @property
    def upper_frequency(self) -> float:
        """Filter bank upper edge; Nyquist when f_max is unset."""
        return self.sample_rate / 2.0 if self.f_max is None else float(self.f_max)

    @property
    def num_bins(self) -> int:
        return self.fft_size // 2 + 1

    def validate(self) -> FeatureConfig:
        """Check invariants; return self so calls can be chained."""
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.window_length < 2:
            raise ConfigurationError(
                f"window_seconds={self.window_seconds} gives window_length={self.window_length} (< 2)"
            )
        if self.hop_length < 1:
            raise ConfigurationError(
                f"stride_seconds={self.stride_seconds} gives hop_length={self.hop_length} (< 1)"
            )
        if self.fft_size <= 0 or self.fft_size % 2 != 0:
            raise ConfigurationError(f"fft_size must be a positive even number, got {self.fft_size}")
        if self.fft_size < self.window_length:
            raise ConfigurationError(
                f"fft_size={self.fft_size} is shorter than window_length={self.window_length}"
            )
        if self.mel_bands <= 0:
            raise ConfigurationError(f"mel_bands must be positive, got {self.mel_bands}")
        if self.block_alignment < 0:
            raise ConfigurationError(f"block_alignment must be >= 0, got {self.block_alignment}")
        if self.dither < 0:
            raise ConfigurationError(f"dither must be >= 0, got {self.dither}")
        if not 0.0 <= self.f_min < self.upper_frequency:
            raise ConfigurationError(
                f"Need 0 <= f_min < f_max, got f_min={self.f_min}, f_max={self.upper_frequency}"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FeatureConfig:
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown feature config keys: {unknown}")
        return cls(**dict(data)).validate()

    @classmethod
    def from_yaml(cls, path: Path) -> FeatureConfig:
        """Load a config from a YAML file.

        The file may hold the settings at top level or under a `features` key.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigurationError: If the content is not a mapping or is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

        if data is None:
            return cls().validate()
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        if "features" in data:
            data = data["features"] or {}
        return cls.from_mapping(data)
