"""
Scene files.

A scene file is JSON::

    {
        "materials": {"red": [0.3, 0.1, 0.1]},
        "background": [0.2, 0.7, 0.8],
        "spheres": [
            {"center": [-1, -1.5, -12], "radius": 2, "material": "red"},
            {"center": [7, 5, -18], "radius": 4, "material": [0.4, 0.4, 0.3]}
        ]
    }

"materials" and "background" are optional. A sphere refers to a named
material or gives its diffuse color inline.
"""
from collections import namedtuple
import json
from pathlib import Path

from loguru import logger

from . import config
from .objects import Material, Sphere
from .utils import vec

Scene = namedtuple("Scene", ["spheres", "background"])


class SceneConfigError(ValueError):
    """Raised for scene files that cannot be read or do not describe a scene."""


def _triple(value, what: str):
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 3
        or not all(isinstance(c, (int, float)) and not isinstance(c, bool) for c in value)
    ):
        raise SceneConfigError(f"{what} must be a list of 3 numbers, got {value!r}")
    return vec(value)


def parse_scene(data: dict) -> Scene:
    if not isinstance(data, dict):
        raise SceneConfigError("scene must be a JSON object")
    if not isinstance(data.get("spheres"), list):
        raise SceneConfigError("scene has no 'spheres' list")
    if not isinstance(data.get("materials", {}), dict):
        raise SceneConfigError("'materials' must map names to colors")

    materials = {
        name: Material(_triple(color, f"material '{name}'"))
        for name, color in data.get("materials", {}).items()
    }
    background = _triple(data.get("background", config.BACKGROUND_COLOR), "background")

    spheres = []
    for i, entry in enumerate(data["spheres"]):
        try:
            center = entry["center"]
            radius = entry["radius"]
            material = entry.get("material", [0.0, 0.0, 0.0])
        except (KeyError, TypeError, AttributeError) as e:
            raise SceneConfigError(f"sphere {i} needs 'center' and 'radius'") from e

        if isinstance(material, str):
            if material not in materials:
                raise SceneConfigError(f"sphere {i} uses unknown material '{material}'")
            material = materials[material]
        else:
            material = Material(_triple(material, f"sphere {i} material"))

        if not isinstance(radius, (int, float)) or isinstance(radius, bool):
            raise SceneConfigError(f"sphere {i} radius must be a number, got {radius!r}")

        spheres.append(Sphere(center=_triple(center, f"sphere {i} center"), radius=radius, material=material))

    return Scene(spheres=spheres, background=background)


def load_scene(path: str | Path) -> Scene:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise SceneConfigError(f"cannot read scene file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SceneConfigError(f"scene file {path} is not valid JSON: {e}") from e

    scene = parse_scene(data)
    logger.debug(f"Loaded {len(scene.spheres)} spheres from {path}")
    return scene
