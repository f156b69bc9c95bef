from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator, ValidationError
from functools import lru_cache
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    """
    Application Settings

    Required Environment Variables:
    - AWS_S3_BUCKET_NAME

    Optional:
    - AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY (falls back to the boto3 credential chain)
    - GOOGLE_TTS_API_KEY (speech endpoints fail without it)
    """

    PROJECT_NAME: str = "Sightpath Vision Service"
    API_V1_STR: str = "/api/v1"

    # AWS Configuration (S3 + Rekognition)
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_REGION: str = "ap-northeast-2"
    AWS_S3_BUCKET_NAME: str
    S3_PUBLIC_BASE_URL: Optional[str] = None
    MAX_LABELS: int = 10

    # Google Text-to-Speech
    GOOGLE_TTS_API_KEY: Optional[str] = None
    TTS_LANGUAGE_CODE: str = "ko-KR"
    TTS_VOICE_NAME: str = "ko-KR-Neural2-c"
    TTS_SSML_GENDER: str = "MALE"
    TTS_AUDIO_ENCODING: str = "MP3"
    TTS_TIMEOUT: int = 10

    # Annotation
    BORDER_THICKNESS: int = 5
    BORDER_COLOR_RED: int = 255
    BORDER_COLOR_GREEN: int = 0
    BORDER_COLOR_BLUE: int = 0
    MAX_IMAGE_SIZE: int = 1024
    CAPTION_FONT_PATH: Optional[str] = None
    CAPTION_FONT_SIZE: int = 32

    # Forward path region, as fractions of the frame
    CENTER_X_RANGE_START: float = 0.3
    CENTER_X_RANGE_END: float = 0.7
    CENTER_Y_RANGE_START: float = 0.3
    CENTER_Y_RANGE_END: float = 0.7

    # Spoken summary
    LABEL_SENTENCE: str = "전방에 {name} 있습니다."
    EMPTY_LABEL_SENTENCE: str = "전방에 아무 것도 없습니다."

    UPLOAD_DIR: str = "uploads"

    # Application Configuration
    ENV_MODE: str = "dev"

    @field_validator('BORDER_COLOR_RED', 'BORDER_COLOR_GREEN', 'BORDER_COLOR_BLUE')
    @classmethod
    def validate_color_channel(cls, v: int) -> int:
        """Color channels are 8-bit"""
        if not 0 <= v <= 255:
            raise ValueError("Color channel must be between 0 and 255")
        return v

    @field_validator('MAX_IMAGE_SIZE', 'CAPTION_FONT_SIZE', 'MAX_LABELS')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator('BORDER_THICKNESS')
    @classmethod
    def validate_thickness(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Border thickness cannot be negative")
        return v

    @property
    def border_color(self) -> tuple[int, int, int]:
        return (self.BORDER_COLOR_RED, self.BORDER_COLOR_GREEN, self.BORDER_COLOR_BLUE)

    @property
    def s3_base_url(self) -> str:
        """Public base URL of the bucket, without trailing slash"""
        if self.S3_PUBLIC_BASE_URL:
            return self.S3_PUBLIC_BASE_URL.rstrip("/")
        return f"https://{self.AWS_S3_BUCKET_NAME}.s3.amazonaws.com"

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = "ignore"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings with detailed error reporting.

    Raises:
        SystemExit: If required environment variables are missing
    """
    try:
        settings = Settings()
        logger.info("Configuration loaded successfully")
        logger.info(f"Environment: {settings.ENV_MODE}")
        logger.info(f"S3 Bucket: {settings.AWS_S3_BUCKET_NAME} ({settings.AWS_REGION})")
        logger.info(
            f"Forward region: x[{settings.CENTER_X_RANGE_START}, {settings.CENTER_X_RANGE_END}] "
            f"y[{settings.CENTER_Y_RANGE_START}, {settings.CENTER_Y_RANGE_END}]"
        )
        if not settings.GOOGLE_TTS_API_KEY:
            logger.warning("GOOGLE_TTS_API_KEY is not set; speech synthesis will fail")
        return settings
    except ValidationError as e:
        logger.error("Configuration validation failed!")
        logger.error("=" * 60)
        logger.error("MISSING OR INVALID ENVIRONMENT VARIABLES:")
        logger.error("=" * 60)

        for error in e.errors():
            field = error['loc'][0]
            error_type = error['type']
            msg = error['msg']

            logger.error(f"  {field}")
            logger.error(f"     Type: {error_type}")
            logger.error(f"     Message: {msg}")
            logger.error("")

        logger.error("=" * 60)
        logger.error("REQUIRED ENVIRONMENT VARIABLES:")
        logger.error("  - AWS_S3_BUCKET_NAME")
        logger.error("=" * 60)
        logger.error("Please set these variables in your .env file or environment")
        logger.error("=" * 60)

        sys.exit(1)
