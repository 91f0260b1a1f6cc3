"""
TTS provider layer.

Modules:
    - engine.py: Engine identifiers, engine selection and the engine factory
    - engines/: Provider adapters (google, voicevox)
    - ratelimit.py: Per-client fixed-window rate limiter
"""
