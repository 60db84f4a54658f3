import argparse
import math
import sys

from loguru import logger

from . import config
from .config import RenderConfig
from .image import ImageWriteError, write_ppm
from .objects import reference_scene
from .raytrace import render, render_gradient
from .scene import SceneConfigError, load_scene


def positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def fov_radians(text: str) -> float:
    value = float(text)
    if not 0 < value < math.pi:
        raise argparse.ArgumentTypeError(f"must be in (0, pi) radians, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="spheretrace", description="Ray trace a scene of spheres into a PPM image")
    parser.add_argument('--width', type=positive_int, default=config.WIDTH, help='Image width')
    parser.add_argument('--height', type=positive_int, default=config.HEIGHT, help='Image height')
    parser.add_argument('--fov', type=fov_radians, default=config.FOV, help='Vertical field of view, in radians')
    parser.add_argument('--camera', type=float, nargs=3, default=config.CAMERA_POS, metavar=('X', 'Y', 'Z'), help='Camera position')
    parser.add_argument('--scene', type=str, default=None, help='JSON scene file (default: the built-in four spheres)')
    parser.add_argument('--output', type=str, default=config.OUTPUT_PATH, help='Output PPM path')
    parser.add_argument('--horizon', type=float, default=config.HORIZON, help='Hits at this distance or further show the background')
    parser.add_argument('--batch-size', type=positive_int, default=config.RAY_BATCH_SIZE, help='Rays traced per batch')
    parser.add_argument('--gradient', action='store_true', help='Render a color gradient instead of the scene')
    parser.add_argument('--verbose', action='store_true', help='Log debug messages')
    return parser


def run(cfg: RenderConfig):
    if cfg.gradient:
        framebuffer = render_gradient(cfg.width, cfg.height)
    else:
        if cfg.scene_path is None:
            spheres, background = reference_scene(), config.BACKGROUND_COLOR
        else:
            spheres, background = load_scene(cfg.scene_path)
        framebuffer = render(
            spheres,
            width=cfg.width,
            height=cfg.height,
            fov=cfg.fov,
            camera_pos=cfg.camera_pos,
            background=background,
            horizon=cfg.horizon,
            ray_batch_size=cfg.ray_batch_size,
        )
    write_ppm(framebuffer, cfg.width, cfg.height, cfg.output_path)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = RenderConfig.from_args(args)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if cfg.verbose else "INFO")

    try:
        run(cfg)
    except (ImageWriteError, SceneConfigError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
