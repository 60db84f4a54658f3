"""
Render defaults and run configuration.

The module constants are the reference configuration. Nothing reads them as
global state: they are only used as default argument values, and every
renderer entry point takes the actual values as parameters.
"""
import argparse
import math
from dataclasses import dataclass

WIDTH = 1024
HEIGHT = 768
FOV = math.pi / 2  # vertical, radians
CAMERA_POS = (0.0, 0.0, 0.0)

BACKGROUND_COLOR = (0.2, 0.7, 0.8)

# Hits at this distance or further are treated as misses and get the
# background color.
HORIZON = 1000.0

OUTPUT_PATH = "./out.ppm"

# Number of camera rays traced together in one vectorized batch.
RAY_BATCH_SIZE = 100000


@dataclass(frozen=True)
class RenderConfig:
    width: int = WIDTH
    height: int = HEIGHT
    fov: float = FOV
    camera_pos: tuple[float, float, float] = CAMERA_POS
    horizon: float = HORIZON
    ray_batch_size: int = RAY_BATCH_SIZE
    output_path: str = OUTPUT_PATH
    scene_path: str | None = None
    gradient: bool = False
    verbose: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "RenderConfig":
        return cls(
            width=args.width,
            height=args.height,
            fov=args.fov,
            camera_pos=tuple(args.camera),
            horizon=args.horizon,
            ray_batch_size=args.batch_size,
            output_path=args.output,
            scene_path=args.scene,
            gradient=args.gradient,
            verbose=args.verbose,
        )
