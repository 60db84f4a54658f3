from dataclasses import field
import jax.numpy as jnp
import numpy as np
from jaxtyping import Float, Array, Bool
import jax
from flax.struct import dataclass
from loguru import logger

from .raytrace import Ray, HitRecord, Hitable
from .types import FloatArr, Vec3, Vec3arr
from .utils import dot, unit_vector_unchecked, vec


@dataclass
class Material:
    diffuse_color: Vec3 = field(default_factory=lambda: jnp.zeros(3, dtype=jnp.float32))

    def __post_init__(self):
        # frozen dataclass, so bypass __setattr__ to coerce lists and tuples
        object.__setattr__(self, "diffuse_color", jnp.asarray(self.diffuse_color, dtype=jnp.float32))

    # compare by color value, the field is an array
    def __eq__(self, other):
        if not isinstance(other, Material):
            return NotImplemented
        return bool(jnp.array_equal(self.diffuse_color, other.diffuse_color))

    def __hash__(self):
        return hash(tuple(np.asarray(self.diffuse_color).tolist()))


class Sphere(Hitable):
    def __init__(self, center: Vec3, radius: float, material: Material | None = None):
        """
        Sphere with a flat-colored material.

        Parameters:
            - center: The center of the sphere, shape (3,).
            - radius: Expected to be positive. Not checked.
            - material: Defaults to a black material.
        """
        object.__setattr__(self, "center", jnp.asarray(center, dtype=jnp.float32)) # shape (3,)
        object.__setattr__(self, "radius", float(radius))
        object.__setattr__(self, "material", material if material is not None else Material())

    def __setattr__(self, name, value):
        raise AttributeError(f"Sphere is immutable, cannot set '{name}'")

    def __delattr__(self, name):
        raise AttributeError(f"Sphere is immutable, cannot delete '{name}'")

    def __repr__(self):
        return f"Sphere(center={self.center.tolist()}, radius={self.radius}, color={self.material.diffuse_color.tolist()})"

    @dataclass
    class _HitInput:
        # parameter for N rays
        O: Vec3arr # origins, shape (N, 3)
        D: Vec3arr # unit directions, shape (N, 3)
        ray_t: FloatArr # distance to the nearest hit so far, shape (N,)

        # the sphere
        center: Vec3
        radius: Float[Array, ""]


    @dataclass
    class _HitOutput:
        mask: Bool[Array, "N"]   # shape (N,)  # noqa: F821
        t: FloatArr
        point: Vec3arr
        normal: Vec3arr


    @staticmethod
    @jax.jit
    def _hit_jit(input: "_HitInput") -> _HitOutput:
        logger.warning(f"JIT cache miss, compile for {input.O.shape[0]} rays")

        O = input.O
        D = input.D
        center = input.center
        radius = input.radius

        # Geometric method. For each ray, tca is the distance along the ray to
        # the point closest to the center, and d2 the squared distance
        # between that point and the center.
        L = center[None, :] - O           # shape (N, 3)
        tca = dot(L, D)                   # shape (N,)
        d2 = dot(L, L) - tca * tca         # shape (N,)
        r2 = radius * radius

        # d2 > r2: the line passes beside the sphere. The clamp only keeps sqrt
        # away from negative numbers, those rays are masked out below.
        thc = jnp.sqrt(jnp.maximum(r2 - d2, 0.0))   # shape (N,)
        t0 = tca - thc
        t1 = tca + thc
        t0 = jnp.where(t0 < 0, t1, t0)   # origin inside the sphere, take the far root

        valid_hits = (d2 <= r2) & (t0 >= 0)
        t = jnp.where(valid_hits, t0, jnp.inf)   # shape (N,)

        # Due to the limitation of jax.jit the rays cannot be filtered here, so
        # write the mask to the output and let the caller do the filtering.
        # Strict comparison keeps the earlier object on exact ties.
        mask = valid_hits & (t < input.ray_t)  # shape (N,)

        point = O + D * jnp.where(valid_hits, t, 0.0)[:, None]  # shape (N, 3)
        normal = unit_vector_unchecked(point - center[None, :])  # shape (N, 3)

        return Sphere._HitOutput(mask=mask, t=t, point=point, normal=normal)

    def intersect(self, origins: Vec3arr, directions: Vec3arr) -> FloatArr:
        """
        Batched ray parameter of the nearest intersection in front of each ray
        origin, inf where the ray misses. `directions` must be unit vectors.
        """
        origins = jnp.asarray(origins, dtype=jnp.float32)
        directions = jnp.asarray(directions, dtype=jnp.float32)
        output = Sphere._hit_jit(self._hit_input(origins, directions, jnp.full(directions.shape[0], jnp.inf, dtype=jnp.float32)))
        return output.t

    def ray_intersect(self, origin: Vec3, direction: Vec3) -> float | None:
        """
        Distance along a single ray to the nearest intersection with t >= 0,
        or None when the ray misses the sphere.

        The direction is normalized first; a zero-length direction raises
        `DegenerateVectorError`.
        """
        ray = Ray.single(origin, direction)
        t = float(self.intersect(ray.origin, ray.direction)[0])
        return None if t == float("inf") else t

    def _hit_input(self, origins: Vec3arr, directions: Vec3arr, ray_t: FloatArr) -> "_HitInput":
        return Sphere._HitInput(
            O=origins,           # shape (N, 3), N is the number of rays
            D=directions,        # shape (N, 3)
            ray_t=ray_t,         # shape (N,)
            center=self.center,  # shape (3,)
            radius=jnp.asarray(self.radius, dtype=jnp.float32),
        )

    def hit(self, record: HitRecord):
        """
        Hit test for the sphere.

        If there is an intersection and the distance is less than ray.t,
        update ray.t to the distance and write the hit point, normal and
        material color into the record.
        """
        ray = record.ray
        output = Sphere._hit_jit(self._hit_input(ray.origin, ray.direction, ray.t))

        mask = output.mask
        ray_idx = jnp.where(mask)[0]  # shape (K,), K is the number of rays that actually hit the sphere

        # Write information back into the record
        ray.t = ray.t.at[ray_idx].set(output.t[ray_idx])
        record.point = record.point.at[ray_idx].set(output.point[ray_idx])
        record.normal_vector = record.normal_vector.at[ray_idx].set(output.normal[ray_idx])
        record.diffuse_color = record.diffuse_color.at[ray_idx].set(self.material.diffuse_color)
        return mask


def reference_scene() -> list[Sphere]:
    """
    The four spheres of the reference image: two off-white and two red.
    """
    offwhite = Material(vec([0.4, 0.4, 0.3]))
    red = Material(vec([0.3, 0.1, 0.1]))

    return [
        Sphere(center=vec([-3, 0, -16]), radius=2, material=offwhite),
        Sphere(center=vec([-1.0, -1.5, -12]), radius=2, material=red),
        Sphere(center=vec([1.5, -0.5, -18]), radius=3, material=red),
        Sphere(center=vec([7, 5, -18]), radius=4, material=offwhite),
    ]
