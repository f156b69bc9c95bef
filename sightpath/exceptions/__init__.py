# Custom exceptions package
from sightpath.exceptions.base import (
    BaseErrorCode,
    VisionErrorCode,
    EnumException
)
from sightpath.exceptions.services import (
    ServiceError,
    StorageError,
    LabelDetectionError,
    SpeechSynthesisError
)

__all__ = [
    'BaseErrorCode',
    'VisionErrorCode',
    'EnumException',
    'ServiceError',
    'StorageError',
    'LabelDetectionError',
    'SpeechSynthesisError'
]
