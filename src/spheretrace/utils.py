from typing import Sequence
import jax.numpy as jnp
import numpy as np

from .types import Vec3, Vec3arr


class DegenerateVectorError(ValueError):
    """Raised when a zero-length vector is asked to be normalized."""


def vec(values: Sequence[float]) -> Vec3:
    """
    Shorthand to make a single-precision vector.
    """
    return jnp.asarray(values, dtype=jnp.float32)


def dot(a: Vec3 | Vec3arr, b: Vec3 | Vec3arr) -> Vec3 | Vec3arr:
    return jnp.sum(a * b, axis=-1)


def unit_vector(v: Vec3 | Vec3arr) -> Vec3 | Vec3arr:
    """
    Normalize a vector or an array of vectors.

    Zero-length vectors have no direction, so normalizing one is a caller
    error. This check forces the value to the host, so it is not meant for
    jitted code; there use `unit_vector_unchecked`.
    """
    norm = jnp.linalg.norm(v, axis=-1, keepdims=True)
    if np.any(np.asarray(norm) == 0):
        raise DegenerateVectorError(f"cannot normalize zero-length vector: {np.asarray(v)}")
    return v / norm


def unit_vector_unchecked(v: Vec3 | Vec3arr) -> Vec3 | Vec3arr:
    return v / jnp.linalg.norm(v, axis=-1, keepdims=True)
