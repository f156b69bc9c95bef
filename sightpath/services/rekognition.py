import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from sightpath.exceptions import LabelDetectionError
from sightpath.schemas.detection import Detection

logger = logging.getLogger(__name__)


class RekognitionService:
    def __init__(
            self,
            bucket_name: str,
            region_name: str,
            max_labels: int = 10,
            aws_access_key_id: Optional[str] = None,
            aws_secret_access_key: Optional[str] = None,
            client=None,
    ):
        if client is not None:
            self.client = client
        elif not aws_access_key_id or not aws_secret_access_key:
            self.client = boto3.client("rekognition", region_name=region_name)
        else:
            self.client = boto3.client(
                "rekognition",
                region_name=region_name,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
            )

        self.bucket_name = bucket_name
        self.max_labels = max_labels

    @classmethod
    def from_settings(cls, settings) -> "RekognitionService":
        return cls(
            bucket_name=settings.AWS_S3_BUCKET_NAME,
            region_name=settings.AWS_REGION,
            max_labels=settings.MAX_LABELS,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )

    async def detect_labels(self, image_name: str) -> list[Detection]:
        """Labels for an object already stored in the bucket, in response order."""
        params = {
            "Image": {
                "S3Object": {
                    "Bucket": self.bucket_name,
                    "Name": image_name
                }
            },
            "MaxLabels": self.max_labels
        }
        try:
            response = await run_in_threadpool(self.client.detect_labels, **params)
        except (BotoCoreError, ClientError) as e:
            raise LabelDetectionError(f"DetectLabels failed for {image_name}: {e}") from e

        try:
            detections = [Detection.model_validate(label) for label in response.get("Labels", [])]
        except ValidationError as e:
            raise LabelDetectionError(f"Unexpected DetectLabels payload: {e}") from e

        logger.info(
            f"Detected {len(detections)} label(s) for {image_name}: "
            f"{[(d.name, len(d.instances)) for d in detections]}"
        )
        return detections
