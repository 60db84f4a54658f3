import json

import math
import pytest

from spheretrace import config
from spheretrace.__main__ import build_parser, main
from spheretrace.config import RenderConfig


def test_default_config_matches_reference():
    cfg = RenderConfig.from_args(build_parser().parse_args([]))
    assert (cfg.width, cfg.height) == (1024, 768)
    assert cfg.fov == pytest.approx(math.pi / 2)
    assert cfg.camera_pos == (0.0, 0.0, 0.0)
    assert cfg.horizon == 1000.0
    assert cfg.output_path == "./out.ppm"
    assert cfg.scene_path is None
    assert not cfg.gradient


def test_config_from_args():
    args = build_parser().parse_args([
        "--width", "32", "--height", "24", "--fov", "1.2",
        "--camera", "1", "2", "3", "--horizon", "50", "--batch-size", "10",
        "--output", "x.ppm", "--scene", "s.json", "--gradient", "--verbose",
    ])
    cfg = RenderConfig.from_args(args)
    assert cfg == RenderConfig(
        width=32, height=24, fov=1.2, camera_pos=(1.0, 2.0, 3.0), horizon=50.0,
        ray_batch_size=10, output_path="x.ppm", scene_path="s.json",
        gradient=True, verbose=True,
    )


def test_main_renders_reference_scene(tmp_path):
    out = tmp_path / "out.ppm"
    assert main(["--width", "20", "--height", "15", "--output", str(out)]) == 0

    data = out.read_bytes()
    header = b"P6\n20 15\n255\n"
    assert data.startswith(header)
    assert len(data) == len(header) + 20 * 15 * 3
    # top-left corner shows the background
    assert data[len(header):len(header) + 3] == bytes([51, 178, 204])


def test_main_gradient(tmp_path):
    out = tmp_path / "gradient.ppm"
    assert main(["--gradient", "--width", "8", "--height", "4", "--output", str(out)]) == 0

    payload = out.read_bytes()[len(b"P6\n8 4\n255\n"):]
    assert len(payload) == 8 * 4 * 3
    assert payload[:3] == bytes([0, 0, 0])


def test_main_scene_file(tmp_path):
    scene = tmp_path / "scene.json"
    scene.write_text(json.dumps({
        "background": [0, 0, 0],
        "spheres": [{"center": [0, 0, -16], "radius": 2, "material": [1, 0, 0]}],
    }))
    out = tmp_path / "out.ppm"
    assert main(["--scene", str(scene), "--width", "5", "--height", "5", "--output", str(out)]) == 0

    payload = out.read_bytes()[len(b"P6\n5 5\n255\n"):]
    center = (2 + 2 * 5) * 3
    assert payload[center:center + 3] == bytes([255, 0, 0])
    assert payload[:3] == bytes([0, 0, 0])


def test_main_unwritable_output(tmp_path):
    out = tmp_path / "missing-dir" / "out.ppm"
    assert main(["--gradient", "--width", "2", "--height", "2", "--output", str(out)]) == 1
    assert not out.exists()


def test_main_bad_scene_file(tmp_path):
    scene = tmp_path / "scene.json"
    scene.write_text("[]")
    out = tmp_path / "out.ppm"
    assert main(["--scene", str(scene), "--output", str(out)]) == 1
    assert not out.exists()


def test_horizon_default_is_named_constant():
    assert config.HORIZON == 1000.0


@pytest.mark.parametrize("argv", [
    ["--width", "0"],
    ["--height", "-3"],
    ["--batch-size", "0"],
    ["--fov", "0"],
    ["--fov", "3.2"],
])
def test_invalid_numbers_rejected_by_parser(argv, tmp_path, capsys):
    out = tmp_path / "out.ppm"
    with pytest.raises(SystemExit) as exc_info:
        main(argv + ["--output", str(out)])
    assert exc_info.value.code == 2
    assert "spheretrace: error:" in capsys.readouterr().err
    assert not out.exists()
