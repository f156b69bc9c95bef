"""
Exceptions raised by the external collaborators (storage, label detection, speech).
Routers translate these into coded HTTP errors; nothing is retried.
"""

class ServiceError(Exception):
    """Base exception for collaborator failures"""
    pass


class StorageError(ServiceError):
    """Object storage put/get failed"""
    pass


class LabelDetectionError(ServiceError):
    """Label detection call failed or returned an unusable payload"""
    pass


class SpeechSynthesisError(ServiceError):
    """Speech synthesis call failed or returned no audio"""
    pass
