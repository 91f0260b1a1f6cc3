"""
Core infrastructure for tts-relay.

Modules:
    - config.py: Settings loading and validated configuration
    - errors.py: Error taxonomy shared by every layer
    - logging/: Structured logging with request correlation
    - metrics.py: Optional Prometheus metrics
"""
