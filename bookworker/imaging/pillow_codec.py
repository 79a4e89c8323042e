import io

from PIL import Image

from bookworker.imaging.base import BaseImageCodec
from bookworker.logging.logger import Log

_JPEG_MODES = frozenset({"RGB", "L", "CMYK"})


class PillowImageCodec(BaseImageCodec):
    """Re-encodes JPEG, PNG, GIF and WebP images with Pillow."""

    def __init__(self, jpeg_quality: int = 75) -> None:
        self._jpeg_quality = jpeg_quality

    def recompress(self, content: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(content)) as image:
                encoded = self._encode(image, image.format)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            Log.debug(f"Image left as is: {exc}")
            return content
        return content if encoded is None else encoded

    def _encode(self, image: Image.Image, image_format: str | None) -> bytes | None:
        output = io.BytesIO()
        if image_format == "JPEG":
            if image.mode not in _JPEG_MODES:
                image = image.convert("RGB")
            image.save(output, "JPEG", quality=self._jpeg_quality, optimize=True)
        elif image_format == "PNG":
            image.save(output, "PNG", optimize=True)
        elif image_format == "WEBP":
            image.save(output, "WEBP", quality=self._jpeg_quality)
        elif image_format == "GIF":
            image.save(output, "GIF", optimize=True, save_all=True)
        else:
            return None
        return output.getvalue()
