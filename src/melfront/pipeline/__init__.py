"""Pipeline orchestration layer.

- `pipeline/features.py` - WAV files -> log-mel .npy files

Import policy:
- CLI imports only from `pipeline.*` for orchestration.
- `pipeline.*` may call `audio.*` and `features.*`.
- `audio.*` and `features.*` must not call `pipeline.*`.
"""
