from functools import lru_cache
from typing import Optional

from fastapi import Request

from sightpath.config import get_settings
from sightpath.services.font import caption_font
from sightpath.services.image import ImageService
from sightpath.services.labels import SelectedLabelStore, label_store
from sightpath.services.rekognition import RekognitionService
from sightpath.services.s3 import S3Service
from sightpath.services.tts import SpeechService


@lru_cache
def get_s3_service() -> S3Service:
    return S3Service.from_settings(get_settings())


@lru_cache
def get_rekognition_service() -> RekognitionService:
    return RekognitionService.from_settings(get_settings())


@lru_cache
def get_speech_service() -> SpeechService:
    return SpeechService.from_settings(get_settings())


@lru_cache
def get_image_service() -> ImageService:
    return ImageService.from_settings(get_settings(), caption_font)


def get_label_store() -> SelectedLabelStore:
    return label_store


def get_session_id(request: Request) -> Optional[str]:
    """Optional per-client key for the selected label; absent means the shared slot."""
    return request.headers.get("X-Session-Id") or None
