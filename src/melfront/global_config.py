"""Global, project-wide configuration constants.

This module intentionally contains **no business logic** – only simple,
shared filesystem anchors and cross-cutting constants that many modules
can import.

Feature extraction settings live in `melfront.features.config`, which builds
on top of these anchors.
"""

from pathlib import Path

# Core roots
PACKAGE_ROOT: Path = Path(__file__).resolve().parent
# PROJECT_ROOT is the repo root (where pyproject.toml and data/ live)
# From src/melfront/global_config.py, go up two levels: src/melfront -> src -> repo root
PROJECT_ROOT: Path = PACKAGE_ROOT.parent.parent

# Core Names
PROJECT_NAME = "melfront"
PACKAGE_NAME = "melfront"

# Data directories
DATA_DIR: Path = PROJECT_ROOT / "data"
RAW_AUDIO_DIR: Path = DATA_DIR / "raw" / "audio"
DERIVED_DIR: Path = DATA_DIR / "derived"
FEATURES_DIR: Path = DERIVED_DIR / "features"

# Logs directories
LOGS_DIR: Path = DATA_DIR / "logs"
DERIVED_LOGS_DIR: Path = LOGS_DIR / "derived"

# Acoustic model input rate; every decoded waveform is resampled to this.
TARGET_SAMPLE_RATE: int = 16000
