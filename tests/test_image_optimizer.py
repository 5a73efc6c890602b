import base64
import io
import random
from unittest.mock import patch

import pytest
from PIL import Image
from pydantic import SecretStr

from app.core.config import settings
from app.core.exceptions import EncodingError, ValidationError
from app.helper import image_optimizer
from app.helper.image_optimizer import downscale, encode_inline_photo, optimize_image, store_photo


def noise_image(size, seed=0):
    rng = random.Random(seed)
    return Image.frombytes("RGB", size, rng.randbytes(size[0] * size[1] * 3))


def png_bytes(image):
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def decode_data_url(url):
    header, payload = url.split(",", 1)
    return header, base64.b64decode(payload)


def test_small_photo_is_kept_as_is():
    data = png_bytes(Image.new("RGB", (16, 16), "red"))
    header, payload = decode_data_url(encode_inline_photo(data))

    assert header == "data:image/png;base64"
    assert payload == data


def test_small_bmp_is_reencoded_as_jpeg():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), "red").save(buffer, format="BMP")
    header, payload = decode_data_url(encode_inline_photo(buffer.getvalue()))

    assert header == "data:image/jpeg;base64"
    assert payload[:2] == b"\xff\xd8"
    assert Image.open(io.BytesIO(payload)).size == (16, 16)


def test_large_photo_is_compressed_under_cap():
    data = png_bytes(noise_image((1200, 1200)))
    assert len(data) > settings.MAX_INLINE_PHOTO_BYTES

    header, payload = decode_data_url(encode_inline_photo(data))

    assert header == "data:image/jpeg;base64"
    assert len(payload) <= settings.MAX_INLINE_PHOTO_BYTES
    assert payload[:2] == b"\xff\xd8"


def test_falls_back_to_downscaling():
    image = noise_image((1600, 1200), seed=1)
    data = png_bytes(image)
    full_size_best = len(image_optimizer._jpeg_bytes(image, 1))
    resized_best = len(image_optimizer._jpeg_bytes(downscale(image), 1))
    cap = (full_size_best + resized_best) // 2

    _, payload = decode_data_url(encode_inline_photo(data, max_bytes=cap))

    assert len(payload) <= cap
    assert Image.open(io.BytesIO(payload)).size == (800, 600)


def test_photo_that_cannot_fit_raises():
    data = png_bytes(noise_image((300, 300)))
    with pytest.raises(EncodingError):
        encode_inline_photo(data, max_bytes=200)


def test_zero_cap_is_not_the_default():
    data = png_bytes(Image.new("RGB", (16, 16), "red"))
    with pytest.raises(EncodingError):
        encode_inline_photo(data, max_bytes=0)


def test_garbage_is_not_an_image():
    with pytest.raises(ValidationError):
        encode_inline_photo(b"definitely not a jpeg")


def test_downscale_uses_fixed_box():
    assert downscale(Image.new("RGB", (4000, 1000))).size == (800, 600)


def test_optimize_image_fits_max_size():
    optimized = optimize_image(png_bytes(Image.new("RGBA", (2048, 1024))))
    image = Image.open(optimized)
    assert image.format == "JPEG"
    assert image.size == (1024, 512)


@pytest.fixture
def cloudinary_settings(monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", SecretStr("secret"))


def test_store_photo_inline_without_cloudinary():
    data = png_bytes(Image.new("RGB", (8, 8)))
    with patch("cloudinary.uploader.upload") as mock_upload:
        assert store_photo(data).startswith("data:image/png;base64,")
    mock_upload.assert_not_called()


def test_store_photo_uploads_to_cloudinary(cloudinary_settings):
    with patch("cloudinary.uploader.upload") as mock_upload:
        mock_upload.return_value = {"secure_url": "https://res.cloudinary.com/demo/listing/pizza.jpg"}
        reference = store_photo(png_bytes(Image.new("RGB", (8, 8))))

    assert reference == "https://res.cloudinary.com/demo/listing/pizza.jpg"
    assert mock_upload.call_args.kwargs["folder"] == "listing"


def test_store_photo_falls_back_when_upload_fails(cloudinary_settings):
    with patch("cloudinary.uploader.upload", side_effect=RuntimeError("cloudinary down")):
        reference = store_photo(png_bytes(Image.new("RGB", (8, 8))))

    assert reference.startswith("data:image/png;base64,")


def test_store_photo_rejects_garbage_before_upload(cloudinary_settings):
    with patch("cloudinary.uploader.upload") as mock_upload:
        with pytest.raises(ValidationError):
            store_photo(b"definitely not a jpeg")
    mock_upload.assert_not_called()
