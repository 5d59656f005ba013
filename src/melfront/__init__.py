"""
melfront core package.

Audio front-end for an on-device speech recognizer:
- WAV decoding and 16 kHz resampling (`melfront.audio`)
- Mel filter bank and log-mel feature extraction (`melfront.features`)
- Batch feature pipeline writing .npy files (`melfront.pipeline`)
- A minimal Typer-based CLI (`melfront.cli`)

Model inference and transcript decoding are handled downstream and are not
part of this package.

Configuration:
- Shared, project-wide filesystem anchors live in `melfront.global_config`.
- Feature extraction settings live in `melfront.features.config`.
"""
