from enum import Enum

from fastapi import HTTPException


class BaseErrorCode(Enum):
    def __init__(self, code: int, message: str):
        self._value_ = code
        self.message = message

    @property
    def code(self):
        return self.value

    def as_dict(self, extras, **kwargs):
        return {
            "code": self.code,
            "message": self.message.format(**kwargs),
            "name": self.name,
            "extras": extras
        }


class VisionErrorCode(BaseErrorCode):
    NO_FILE_CHOSEN = (2000, "No files chosen")
    UPLOAD_FAILED = (2001, "Error uploading image")
    ANALYZE_FAILED = (2002, "Error analyzing image")
    TTS_FAILED = (2003, "Error converting text to speech")
    NO_LABEL_SELECTED = (2004, "No analyzed image to describe")


class EnumException(HTTPException):
    def __init__(self, status_code, error_enum: BaseErrorCode, headers=None, extras=None, err_kwargs=None):
        super().__init__(status_code, detail=error_enum.as_dict(extras, **(err_kwargs or {})), headers=headers)


__all__ = [
    "BaseErrorCode",
    "VisionErrorCode",
    "EnumException",
]
