import jax.numpy as jnp
import numpy as np
import pytest

from spheretrace import config
from spheretrace.image import ImageWriteError, to_bytes, to_image, write_ppm


def test_to_bytes_background():
    assert to_bytes(jnp.asarray([config.BACKGROUND_COLOR], dtype=jnp.float32)).tolist() == [[51, 178, 204]]


def test_to_bytes_clamps():
    pixels = to_bytes(jnp.asarray([[1.5, -0.3, 0.5]], dtype=jnp.float32))
    assert pixels.dtype == np.uint8
    assert pixels.tolist() == [[255, 0, 128]]


def test_write_ppm_header_and_payload(tmp_path):
    width, height = 4, 3
    fb = jnp.tile(jnp.asarray(config.BACKGROUND_COLOR, dtype=jnp.float32), (width * height, 1))
    path = tmp_path / "out.ppm"
    write_ppm(fb, width, height, path)

    data = path.read_bytes()
    header = b"P6\n4 3\n255\n"
    assert data.startswith(header)
    assert len(data) == len(header) + width * height * 3
    assert data[len(header):] == bytes([51, 178, 204]) * (width * height)


def test_write_ppm_is_row_major(tmp_path):
    width, height = 3, 2
    fb = jnp.zeros((width * height, 3), dtype=jnp.float32)
    fb = fb.at[1 + 1 * width].set(jnp.asarray([1.0, 0.0, 0.0]))  # x=1, y=1
    path = tmp_path / "rows.ppm"
    write_ppm(fb, width, height, path)

    payload = path.read_bytes()[len(b"P6\n3 2\n255\n"):]
    offset = (1 + 1 * width) * 3
    assert payload[offset:offset + 3] == bytes([255, 0, 0])
    assert payload.count(255) == 1


def test_to_image_shape():
    image = to_image(jnp.zeros((6, 3)), 3, 2)
    assert image.size == (3, 2)
    assert image.mode == "RGB"


def test_write_ppm_rejects_wrong_framebuffer_size(tmp_path):
    with pytest.raises(ValueError):
        write_ppm(jnp.zeros((5, 3)), 3, 2, tmp_path / "bad.ppm")
    assert not (tmp_path / "bad.ppm").exists()


def test_write_ppm_unwritable_path(tmp_path):
    path = tmp_path / "no-such-dir" / "out.ppm"
    with pytest.raises(ImageWriteError) as excinfo:
        write_ppm(jnp.zeros((4, 3)), 2, 2, path)
    assert isinstance(excinfo.value, OSError)
    assert isinstance(excinfo.value.__cause__, OSError)
    assert not path.exists()
