from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError
from dataclasses import dataclass
from typing import Iterable
import io
import logging

from sightpath.exceptions import StorageError
from sightpath.schemas.detection import Detection
from sightpath.services.font import CaptionFont
from sightpath.services.geometry import PixelRect, RegionOfInterest, to_pixel_rect

logger = logging.getLogger(__name__)

CAPTION_PADDING = 2
CAPTION_OFFSET = 10
CAPTION_CHAR_WIDTH = 0.6
CAPTION_BACKGROUND = (255, 255, 255, 255)
CAPTION_TEXT_COLOR = (0, 0, 0, 255)


@dataclass(frozen=True)
class BoxStyle:
    thickness: int
    color: tuple[int, int, int]
    font_size: int = 32


def fill_rect(draw: ImageDraw.ImageDraw, x: int, y: int, width: int, height: int, color):
    """Solid fill of width x height pixels at (x, y); clipped by the image, empty sizes are skipped."""
    if width <= 0 or height <= 0:
        return
    draw.rectangle([x, y, x + width - 1, y + height - 1], fill=color)


def draw_border(image: Image.Image, rect: PixelRect, style: BoxStyle):
    draw = ImageDraw.Draw(image)
    color = (*style.color, 255)
    t = style.thickness
    x, y, w, h = rect.x, rect.y, rect.width, rect.height

    fill_rect(draw, x, y, w, t, color)              # top
    fill_rect(draw, x, y, t, h, color)              # left
    fill_rect(draw, x, y + h - t, w, t, color)      # bottom
    fill_rect(draw, x + w - t, y, t, h, color)      # right


def caption_box(rect: PixelRect, name: str, confidence: float, font_size: int) -> tuple[int, int, int, int]:
    """(x, y, width, height) of the white caption background inside the bottom-left of the box."""
    background_height = font_size * 2 + CAPTION_PADDING * 2
    text_y = rect.y + rect.height - background_height - CAPTION_OFFSET

    name_width = len(name) * font_size * CAPTION_CHAR_WIDTH
    confidence_width = len(f"{confidence:.2f}") * font_size * CAPTION_CHAR_WIDTH
    background_width = int(max(name_width, confidence_width) + CAPTION_PADDING * 2)

    return (rect.x + CAPTION_OFFSET, text_y, background_width, background_height)


def draw_caption(image: Image.Image, rect: PixelRect, name: str, confidence: float,
                 font: ImageFont.ImageFont, font_size: int):
    """Render onto a cropped band and paste it back, so a failed render leaves the image untouched."""
    x, y, width, height = caption_box(rect, name, confidence, font_size)
    top = max(0, y - font_size)
    bottom = min(image.height, y + height + font_size)
    if bottom <= top:
        return

    band = image.crop((0, top, image.width, bottom))
    draw = ImageDraw.Draw(band)
    band_y = y - top
    fill_rect(draw, x, band_y, width, height, CAPTION_BACKGROUND)

    text_x = x + CAPTION_PADDING
    draw.text((text_x, band_y + CAPTION_PADDING), name, font=font, fill=CAPTION_TEXT_COLOR)
    draw.text((text_x, band_y + font_size + CAPTION_PADDING), f"{confidence:.2f}", font=font, fill=CAPTION_TEXT_COLOR)

    image.paste(band, (0, top))


def resize_image(image: Image.Image, max_dimension: int) -> Image.Image:
    """Shrink so the longer side equals max_dimension; width wins ties. Never enlarges."""
    width, height = image.size
    if width <= max_dimension and height <= max_dimension:
        return image

    if width >= height:
        new_size = (max_dimension, max(1, round(height * max_dimension / width)))
    else:
        new_size = (max(1, round(width * max_dimension / height)), max_dimension)

    return image.resize(new_size, Image.Resampling.BILINEAR)


class ImageService:
    def __init__(self, style: BoxStyle, region: RegionOfInterest, max_dimension: int, font: CaptionFont):
        self.style = style
        self.region = region
        self.max_dimension = max_dimension
        self.font = font

    @classmethod
    def from_settings(cls, settings, font: CaptionFont) -> "ImageService":
        return cls(
            style=BoxStyle(
                thickness=settings.BORDER_THICKNESS,
                color=settings.border_color,
                font_size=settings.CAPTION_FONT_SIZE,
            ),
            region=RegionOfInterest.from_settings(settings),
            max_dimension=settings.MAX_IMAGE_SIZE,
            font=font,
        )

    def annotate(self, image: Image.Image, detections: Iterable[Detection], show_captions: bool) -> int:
        """
        Draw every instance whose center lies in the forward region, in response order.

        Returns the number of boxes drawn.
        """
        width, height = image.size
        font = self.font.get() if show_captions else None
        if show_captions and font is None:
            logger.warning("Caption font not ready; drawing boxes without captions")

        drawn = 0
        for detection in detections:
            for instance in detection.instances:
                if instance.bounding_box is None:
                    continue
                rect = to_pixel_rect(instance.bounding_box, width, height)
                center_x, center_y = rect.center
                if not self.region.contains(center_x, center_y, width, height):
                    continue

                draw_border(image, rect, self.style)
                if font is not None:
                    try:
                        draw_caption(image, rect, detection.name, detection.confidence, font, self.style.font_size)
                    except (OSError, ValueError) as e:
                        logger.warning(f"Caption render failed for {detection.name}: {e}")
                drawn += 1
        return drawn

    def draw_bounding_boxes(self, image_bytes: bytes, detections: list[Detection], show_captions: bool = False) -> bytes:
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image = image.convert("RGBA")
        except (UnidentifiedImageError, OSError) as e:
            raise StorageError(f"Stored object is not a decodable image: {e}") from e

        drawn = self.annotate(image, detections, show_captions)
        image = resize_image(image, self.max_dimension)
        logger.info(f"Annotated {drawn} object(s); output size {image.size[0]}x{image.size[1]}")

        output_buffer = io.BytesIO()
        image.save(output_buffer, format="PNG")
        return output_buffer.getvalue()
