from collections import namedtuple
from typing import Iterable, Sequence
import math
import jax.numpy as jnp
from jaxtyping import Array, Int
from datetime import datetime

from loguru import logger

from . import config
from .types import Vec3, Vec3arr, BoolArr, Framebuffer
from .utils import unit_vector, unit_vector_unchecked


# Result of tracing a single ray against the scene.
Hit = namedtuple("Hit", ["t", "point", "normal", "material"])


class Ray:
    def __init__(self, origin: Vec3 | Vec3arr, direction: Vec3arr, index: Int[Array, "n"] | None = None):  # noqa: F821
        """
        Ray class to represent N rays in 3D space.

        Parameters:
            - origin: The starting point of the rays, shape (N, 3), or a
              single point shape (3,) shared by all rays.
            - direction: The direction of the rays, shape (N, 3). It must be
              normalized.
            - index: The flat framebuffer index (x + y * width) of the pixel
              each ray is casted from, shape (N,).
        """
        direction = jnp.asarray(direction, dtype=jnp.float32)
        origin = jnp.asarray(origin, dtype=jnp.float32)
        self.origin = jnp.broadcast_to(origin, direction.shape)
        self.direction = direction
        if index is None:
            index = jnp.arange(direction.shape[0], dtype=jnp.int32)
        self.index = index

        # Distance from the ray origin to the nearest intersection point.
        #
        # Conventions:
        #   - t is never smaller than 0. (It is a ray, not a line.)
        #   - t < inf: The ray intersects an object.
        #   - t = inf: The ray does not intersect any object.
        self.t = jnp.full(self.direction.shape[0], jnp.inf, dtype=jnp.float32)  # shape (N,)

    def __len__(self):
        return self.origin.shape[0]

    @staticmethod
    def single(origin: Vec3, direction: Vec3) -> "Ray":
        """
        Build a batch holding one ray. The direction is normalized here, so a
        zero-length direction raises `DegenerateVectorError`.
        """
        direction = unit_vector(jnp.asarray(direction, dtype=jnp.float32))
        return Ray(
            origin=jnp.asarray(origin, dtype=jnp.float32)[None, :],
            direction=direction[None, :],
        )

    def write_back_to_framebuffer(self, framebuffer: Framebuffer, colors: Vec3arr) -> Framebuffer:
        """
        Store the color of each ray at the pixel it was casted from.
        """
        return framebuffer.at[self.index].set(colors)


class HitRecord:
    def __init__(self, ray: Ray):
        self.ray = ray  # N rays
        self.point = jnp.zeros((ray.direction.shape[0], 3), dtype=jnp.float32) # shape (N, 3)
        self.normal_vector = jnp.zeros((ray.direction.shape[0], 3), dtype=jnp.float32) # shape (N, 3)
        self.diffuse_color = jnp.zeros((ray.direction.shape[0], 3), dtype=jnp.float32) # shape (N, 3)

        # Position of the hit sphere in the scene sequence, -1 for no hit.
        self.sphere_index = jnp.full((ray.direction.shape[0],), -1, dtype=jnp.int32) # shape (N,)

    @property
    def hit_mask(self) -> BoolArr:
        return self.sphere_index >= 0


class Hitable:
    def hit(self, record: HitRecord) -> BoolArr:
        """
        Test the rays of `record` against this object. Rays for which the
        object is strictly nearer than `record.ray.t` are updated in place,
        and the mask of those rays is returned.
        """
        raise NotImplementedError("hit() method not implemented in base class")


def intersect_record(
        record: HitRecord,
        spheres: Sequence[Hitable],
        horizon: float = config.HORIZON,
    ) -> HitRecord:
    """
    Find the nearest sphere for every ray in the record.

    Spheres are tested in order and a sphere only replaces the current hit
    when it is strictly nearer, so the first sphere wins exact ties. Hits at
    or beyond `horizon` are reported as misses.
    """
    for i, sphere in enumerate(spheres):
        mask = sphere.hit(record)
        record.sphere_index = jnp.where(mask, i, record.sphere_index)

    beyond = record.ray.t >= horizon
    record.sphere_index = jnp.where(beyond, -1, record.sphere_index)
    return record


def shade_record(record: HitRecord, background: Vec3 = config.BACKGROUND_COLOR) -> Vec3arr:
    """
    Flat shading: the material color where a ray hit, the background
    elsewhere. The normal is not used.
    """
    background = jnp.asarray(background, dtype=jnp.float32)
    return jnp.where(record.hit_mask[:, None], record.diffuse_color, background[None, :])


def scene_intersect(
        origin: Vec3,
        direction: Vec3,
        spheres: Sequence[Hitable],
        horizon: float = config.HORIZON,
    ) -> Hit | None:
    """
    Trace one ray against the scene.

    Returns the `Hit` (t, hit point, surface normal, material) of the nearest
    sphere, or None when nothing is hit before `horizon`.
    """
    record = intersect_record(HitRecord(Ray.single(origin, direction)), spheres, horizon)
    idx = int(record.sphere_index[0])
    if idx < 0:
        return None
    return Hit(
        t=float(record.ray.t[0]),
        point=record.point[0],
        normal=record.normal_vector[0],
        material=spheres[idx].material,
    )


def cast_ray(
        origin: Vec3,
        direction: Vec3,
        spheres: Sequence[Hitable],
        background: Vec3 = config.BACKGROUND_COLOR,
        horizon: float = config.HORIZON,
    ) -> Vec3:
    hit = scene_intersect(origin, direction, spheres, horizon)
    if hit is None:
        return jnp.asarray(background, dtype=jnp.float32)
    return hit.material.diffuse_color


class Camera:
    def __init__(self, width: int, height: int, fov: float = config.FOV, pos: Vec3 = config.CAMERA_POS):
        """
        Pinhole camera looking down the -z axis.

        Parameters:
            - width, height: Image size in pixels.
            - fov: Vertical field of view in radians.
            - pos: Camera position, the origin of every camera ray.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"image size must be positive, got {width}x{height}")
        if not 0 < fov < math.pi:
            raise ValueError(f"fov must be in (0, pi) radians, got {fov}")

        self.width = int(width)
        self.height = int(height)
        self.fov = fov
        self.pos = jnp.asarray(pos, dtype=jnp.float32) # shape (3,)

        self.scale = math.tan(fov / 2)
        self.aspect = self.width / self.height

    @property
    def num_pixels(self) -> int:
        return self.width * self.height

    def directions(self, start: int, end: int) -> Vec3arr:
        """
        Unit ray directions for the flat pixel indices [start, end).
        """
        k = jnp.arange(start, end, dtype=jnp.int32)
        i = (k % self.width).astype(jnp.float32)   # column
        j = (k // self.width).astype(jnp.float32)  # row

        x = (2 * (i + 0.5) / self.width - 1) * self.scale * self.aspect
        y = -(2 * (j + 0.5) / self.height - 1) * self.scale
        dirs = jnp.stack((x, y, -jnp.ones_like(x)), axis=-1) # shape (N, 3)

        # z is always -1, so no direction can be zero
        return unit_vector_unchecked(dirs)


class RaytraceRenderer:
    def __init__(
            self,
            cam: Camera,
            ray_batch_size: int = config.RAY_BATCH_SIZE,
            background: Vec3 = config.BACKGROUND_COLOR,
            horizon: float = config.HORIZON,
        ):
        if ray_batch_size <= 0:
            raise ValueError(f"ray_batch_size must be positive, got {ray_batch_size}")

        self.cam = cam
        self.ray_batch_size = ray_batch_size
        self.background = jnp.asarray(background, dtype=jnp.float32)
        self.horizon = horizon

    def _get_cam_ray(self) -> Iterable[Ray]:
        cam = self.cam
        for start in range(0, cam.num_pixels, self.ray_batch_size):
            end = min(start + self.ray_batch_size, cam.num_pixels)
            yield Ray(
                origin=cam.pos,
                direction=cam.directions(start, end),
                index=jnp.arange(start, end, dtype=jnp.int32),
            )

    def render(self, spheres: Sequence[Hitable]) -> Framebuffer:
        """
        Render the scene into a flat, row-major framebuffer of shape
        (width * height, 3).
        """
        cam = self.cam
        framebuffer = jnp.zeros((cam.num_pixels, 3), dtype=jnp.float32)

        start_time = datetime.now()
        logger.info(f"Rendering {cam.width}x{cam.height}, {len(spheres)} spheres")

        for ray in self._get_cam_ray():
            batch_start_at = datetime.now()
            record = intersect_record(HitRecord(ray), spheres, self.horizon)
            colors = shade_record(record, self.background)
            framebuffer = ray.write_back_to_framebuffer(framebuffer, colors)
            logger.info(f"{len(ray)} rays x {len(spheres)} spheres, time {datetime.now() - batch_start_at}")

        elapsed_time = datetime.now() - start_time
        logger.info(f"Rendering time: {elapsed_time}")
        return framebuffer


def render(
        spheres: Sequence[Hitable],
        width: int = config.WIDTH,
        height: int = config.HEIGHT,
        fov: float = config.FOV,
        camera_pos: Vec3 = config.CAMERA_POS,
        background: Vec3 = config.BACKGROUND_COLOR,
        horizon: float = config.HORIZON,
        ray_batch_size: int = config.RAY_BATCH_SIZE,
    ) -> Framebuffer:
    cam = Camera(width=width, height=height, fov=fov, pos=camera_pos)
    renderer = RaytraceRenderer(
        cam=cam,
        ray_batch_size=ray_batch_size,
        background=background,
        horizon=horizon,
    )
    return renderer.render(spheres)


def render_gradient(width: int = config.WIDTH, height: int = config.HEIGHT) -> Framebuffer:
    """
    Fill a framebuffer with a color ramp: red grows downwards, green grows
    to the right. No scene is involved.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"image size must be positive, got {width}x{height}")

    j, i = jnp.meshgrid(jnp.arange(height), jnp.arange(width), indexing='ij') # shapes (h, w)
    red = (j / height).astype(jnp.float32).ravel()
    green = (i / width).astype(jnp.float32).ravel()
    return jnp.stack((red, green, jnp.zeros_like(red)), axis=-1) # shape (h * w, 3)
