"""
tts-relay Services Layer.

Business logic between the API layer and the provider adapters.

Components:
    - validators.py: Raw JSON body -> SynthesisRequest
    - relay_service.py: RelayService (engine selection and dispatch)
"""
from .relay_service import AudioResult, RelayService, audio_filename
from .validators import SynthesisRequest, validate_request

__all__ = [
    "RelayService",
    "AudioResult",
    "SynthesisRequest",
    "audio_filename",
    "validate_request",
]
