from fastapi import APIRouter, UploadFile, File, Depends, Query
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool
from typing import Optional
from urllib.parse import quote
import logging
import os
import shutil
import tempfile

from sightpath.config import Settings, get_settings
from sightpath.dependencies import (
    get_image_service,
    get_label_store,
    get_rekognition_service,
    get_s3_service,
    get_session_id,
    get_speech_service,
)
from sightpath.exceptions import EnumException, ServiceError, VisionErrorCode
from sightpath.schemas.detection import UploadResponse
from sightpath.schemas.speech import SpeechRequest
from sightpath.services.image import ImageService
from sightpath.services.labels import SelectedLabelStore, describe_prominent
from sightpath.services.rekognition import RekognitionService
from sightpath.services.s3 import S3Service
from sightpath.services.tts import SpeechService

logger = logging.getLogger(__name__)

SELECTED_LABEL_HEADER = "X-Selected-Label"

router = APIRouter()


def _spool_upload(upload: UploadFile, upload_dir: str) -> str:
    os.makedirs(upload_dir, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=upload_dir, delete=False) as tmp:
        try:
            shutil.copyfileobj(upload.file, tmp)
        except Exception:
            tmp.close()
            _remove_upload(tmp.name)
            raise
        return tmp.name


def _remove_upload(path: str):
    try:
        os.unlink(path)
    except OSError as e:
        logger.warning(f"Error deleting file {path}: {e}")


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    image: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    s3: S3Service = Depends(get_s3_service),
):
    """
    Store the uploaded image in S3 under its original filename.
    """
    if image is None or not image.filename:
        raise EnumException(400, VisionErrorCode.NO_FILE_CHOSEN)

    tmp_path = None
    try:
        tmp_path = await run_in_threadpool(_spool_upload, image, settings.UPLOAD_DIR)
        with open(tmp_path, "rb") as f:
            content = f.read()
    except OSError as e:
        logger.error(f"Error reading file: {e}", exc_info=True)
        if tmp_path:
            _remove_upload(tmp_path)
        raise EnumException(500, VisionErrorCode.UPLOAD_FAILED, extras="Error reading file")

    try:
        key = await s3.put(image.filename, content, content_type=image.content_type)
    except ServiceError as e:
        logger.error(f"Error in /upload: {e}", exc_info=True)
        raise EnumException(500, VisionErrorCode.UPLOAD_FAILED)
    finally:
        _remove_upload(tmp_path)

    return UploadResponse(imageName=key)


@router.get("/analyze/{image_name}")
async def analyze_image(
    image_name: str,
    show_objects: bool = Query(False, alias="showObjects"),
    settings: Settings = Depends(get_settings),
    s3: S3Service = Depends(get_s3_service),
    rekognition: RekognitionService = Depends(get_rekognition_service),
    images: ImageService = Depends(get_image_service),
    store: SelectedLabelStore = Depends(get_label_store),
    session_id: Optional[str] = Depends(get_session_id),
):
    """
    Workflow:
    1. Detect labels for the stored object.
    2. Pick the most prominent object and phrase it.
    3. Fetch the stored image, draw boxes ahead, resize, encode PNG.
    4. Record the sentence for the speech endpoint.
    """
    try:
        detections = await rekognition.detect_labels(image_name)
        sentence = describe_prominent(detections, settings.LABEL_SENTENCE, settings.EMPTY_LABEL_SENTENCE)

        image_bytes = await s3.fetch(s3.object_url(image_name))
        png = await run_in_threadpool(images.draw_bounding_boxes, image_bytes, detections, show_objects)
    except ServiceError as e:
        logger.error(f"Error in /analyze: {e}", exc_info=True)
        raise EnumException(500, VisionErrorCode.ANALYZE_FAILED)

    store.set(sentence, session_id)

    return Response(
        content=png,
        media_type="image/png",
        headers={SELECTED_LABEL_HEADER: quote(sentence)},
    )


async def _speak(text: str, speech: SpeechService) -> Response:
    try:
        audio = await speech.synthesize(text)
    except ServiceError as e:
        logger.error(f"Error in /tts: {e}", exc_info=True)
        raise EnumException(500, VisionErrorCode.TTS_FAILED)
    return Response(content=audio, media_type=speech.media_type)


@router.get("/tts")
async def speak_selected_label(
    speech: SpeechService = Depends(get_speech_service),
    store: SelectedLabelStore = Depends(get_label_store),
    session_id: Optional[str] = Depends(get_session_id),
):
    """
    Read out the sentence from the latest analyze call (per X-Session-Id, or shared).
    """
    sentence = store.get(session_id)
    if sentence is None:
        raise EnumException(404, VisionErrorCode.NO_LABEL_SELECTED)
    return await _speak(sentence, speech)


@router.post("/tts")
async def speak_text(
    request: SpeechRequest,
    speech: SpeechService = Depends(get_speech_service),
):
    """
    Read out the given sentence, typically the X-Selected-Label value from /analyze.
    """
    return await _speak(request.text, speech)
