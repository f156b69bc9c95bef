import logging
import threading
from typing import Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)


class CaptionFont:
    """
    Caption font loaded once, in the background, at startup.

    Readers only ever see ``None`` (not ready) or a fully loaded font.
    """

    def __init__(self):
        self._font: Optional[ImageFont.ImageFont] = None
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._font is not None

    def get(self) -> Optional[ImageFont.ImageFont]:
        return self._font

    def load(self, path: Optional[str], size: int) -> Optional[ImageFont.ImageFont]:
        with self._lock:
            if self._font is not None:
                return self._font
            try:
                if path:
                    font = ImageFont.truetype(path, size)
                else:
                    font = ImageFont.load_default(size=size)
            except OSError as e:
                logger.error(f"Caption font failed to load from {path!r}: {e}")
                return None
            self._font = font
            logger.info(f"Caption font ready ({path or 'default'}, size {size})")
            return font


caption_font = CaptionFont()
