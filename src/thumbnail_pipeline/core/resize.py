"""Pillow backed resize engine."""

import io
from typing import Any, Dict, Iterable, List, Union

from PIL import Image, UnidentifiedImageError

from .exceptions import ImageProcessingError, UnsupportedFormatError
from .models import ImageFormat, ResizeConfig

WEBP_METHOD = 4
WHITE = (255, 255, 255)


def _to_format(value: Union[ImageFormat, str]) -> ImageFormat:
    try:
        return ImageFormat(value)
    except ValueError as exc:
        allowed = ", ".join(fmt.value for fmt in ImageFormat)
        raise UnsupportedFormatError(
            f"Unsupported format: {value} (expected one of {allowed})"
        ) from exc


def load_image(image_bytes: bytes) -> "Image.Image":
    """Decode image bytes, raising ImageProcessingError for anything unreadable."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (
        UnidentifiedImageError,
        OSError,
        SyntaxError,
        Image.DecompressionBombError,
    ) as exc:
        raise ImageProcessingError(f"Could not decode image: {exc}") from exc
    return image


def _flatten(image: "Image.Image") -> "Image.Image":
    """Composite an image with alpha onto a white background."""
    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, WHITE)
    background.paste(rgba, mask=rgba.split()[-1])
    return background


def _has_alpha(image: "Image.Image") -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


class PillowResizeEngine:
    """Fit-inside resize and re-encode using Pillow.

    Aspect ratio is preserved and images are never enlarged: the output is at
    most the smaller of the source size and the requested box on each axis.
    """

    def resize(self, image_bytes: bytes, config: ResizeConfig) -> bytes:
        image_format = _to_format(config.format)
        image = load_image(image_bytes)

        # Palette images resample with NEAREST only; widen them first.
        if image.mode in ("P", "1"):
            image = image.convert("RGBA" if _has_alpha(image) else "RGB")

        image.thumbnail((config.width, config.height), Image.LANCZOS)
        image = self._prepare_mode(image, image_format)

        output = io.BytesIO()
        try:
            image.save(output, **self._save_options(image_format, config.quality))
        except (OSError, ValueError) as exc:
            raise ImageProcessingError(
                f"Could not encode {image_format.value}: {exc}"
            ) from exc
        return output.getvalue()

    def resize_many(
        self, image_bytes: bytes, configs: Iterable[ResizeConfig]
    ) -> List[bytes]:
        """Produce one rendition per config from the same source bytes."""
        return [self.resize(image_bytes, config) for config in configs]

    @staticmethod
    def _prepare_mode(image: "Image.Image", image_format: ImageFormat) -> "Image.Image":
        if image_format is ImageFormat.JPEG:
            if _has_alpha(image):
                return _flatten(image)
            if image.mode not in ("RGB", "L"):
                return image.convert("RGB")
            return image
        if image_format is ImageFormat.WEBP:
            if image.mode in ("RGB", "RGBA"):
                return image
            return image.convert("RGBA" if _has_alpha(image) else "RGB")
        # PNG handles every mode left after the palette conversion except CMYK.
        if image.mode == "CMYK":
            return image.convert("RGB")
        return image

    @staticmethod
    def _save_options(image_format: ImageFormat, quality: int) -> Dict[str, Any]:
        if image_format is ImageFormat.JPEG:
            return {"format": "JPEG", "quality": quality, "optimize": True}
        if image_format is ImageFormat.PNG:
            # PNG is lossless; quality only selects the zlib level.
            return {
                "format": "PNG",
                "compress_level": max(0, min(9, (100 - quality) // 10)),
            }
        return {"format": "WEBP", "quality": quality, "method": WEBP_METHOD}


def describe_image(image_bytes: bytes) -> Dict[str, Any]:
    """
    Basic information about an encoded image.

    Args:
        image_bytes: Encoded image

    Returns:
        Dictionary with width, height, format and mode
    """
    image = load_image(image_bytes)
    return {
        "width": image.width,
        "height": image.height,
        "format": image.format or "unknown",
        "mode": image.mode,
    }
