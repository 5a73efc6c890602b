from PIL import Image, UnidentifiedImageError
import base64
import io

import cloudinary
import cloudinary.uploader

from app.core.config import settings
from app.core.exceptions import EncodingError, ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

# Fractions of full JPEG quality, tried in order until the payload fits
COMPRESSION_LEVELS = (0.1, 0.05, 0.02, 0.01, 0.005)
FALLBACK_SIZE = (800, 600)
# Formats every browser can show from a data URL
INLINE_FORMATS = ("JPEG", "PNG", "WEBP")


def _open_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("Cannot identify image file") from e
    return image


def _to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _jpeg_bytes(image: Image.Image, quality: int) -> bytes:
    # Convert to RGB if it has an alpha channel
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()


def _pillow_quality(level: float) -> int:
    return max(1, round(level * 100))


def _compress_to_fit(image: Image.Image, max_bytes: int):
    for level in COMPRESSION_LEVELS:
        data = _jpeg_bytes(image, _pillow_quality(level))
        logger.debug("Compression level %s gave %d bytes", level, len(data))
        if len(data) <= max_bytes:
            return data
    return None


def downscale(image: Image.Image) -> Image.Image:
    """Stretch to the fixed fallback box, the aspect ratio is not kept."""
    return image.resize(FALLBACK_SIZE)


def encode_inline_photo(data: bytes, max_bytes: int = None) -> str:
    """
    Encodes an uploaded photo as a data URL small enough to store on the listing.

    JPEG, PNG and WebP payloads already under the cap are kept as they are.
    Other formats are re-encoded as JPEG first. Anything still over the cap is
    re-encoded as JPEG at decreasing quality, then downscaled to 800x600 and
    tried again.

    :param data: The raw bytes of the uploaded image.
    :param max_bytes: Size cap for the encoded image, defaults to MAX_INLINE_PHOTO_BYTES.
    :return: A `data:<mime>;base64,...` string.
    :raises ValidationError: If the data is not an image.
    :raises EncodingError: If the image cannot be made small enough.
    """
    if max_bytes is None:
        max_bytes = settings.MAX_INLINE_PHOTO_BYTES
    image = _open_image(data)

    if len(data) <= max_bytes and image.format in INLINE_FORMATS:
        return _to_data_url(data, Image.MIME[image.format])

    if image.format not in INLINE_FORMATS:
        logger.info("Re-encoding %s photo as JPEG", image.format)
        converted = _jpeg_bytes(image, 85)
        if len(converted) <= max_bytes:
            return _to_data_url(converted)

    logger.info("Photo is %d bytes, compressing under %d", len(data), max_bytes)
    compressed = _compress_to_fit(image, max_bytes)
    if compressed is None:
        logger.info("Compression alone was not enough, resizing to %sx%s", *FALLBACK_SIZE)
        compressed = _compress_to_fit(downscale(image), max_bytes)
    if compressed is None:
        raise EncodingError("Could not compress image small enough")

    logger.info("Photo compressed to %d bytes", len(compressed))
    return _to_data_url(compressed)


def optimize_image(data: bytes, max_size=(1024, 1024), quality=85) -> io.BytesIO:
    """
    Resizes an image to fit `max_size` and re-encodes it as JPEG for upload.

    :param data: The raw bytes of the image.
    :param max_size: A tuple representing the maximum width and height of the image.
    :param quality: An integer representing the quality of the compressed image (1-95).
    :return: A file-like object containing the optimized image data.
    """
    image = _open_image(data)

    # Resize the image
    image.thumbnail(max_size)

    optimize_image_io = io.BytesIO(_jpeg_bytes(image, quality))
    optimize_image_io.seek(0)
    return optimize_image_io


def _upload_to_cloudinary(data: bytes) -> str:
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET.get_secret_value()
    )
    result = cloudinary.uploader.upload(optimize_image(data), folder="listing")
    return result.get("secure_url")


def store_photo(data: bytes) -> str:
    """Host the photo on Cloudinary when configured, otherwise inline it."""
    if settings.cloudinary_enabled:
        try:
            url = _upload_to_cloudinary(data)
        except (EncodingError, ValidationError):
            raise
        except Exception as e:
            logger.warning("Cloudinary upload failed, storing photo inline: %s", e)
        else:
            if url:
                return url
            logger.warning("Cloudinary returned no URL, storing photo inline")
    return encode_inline_photo(data)
