from spheretrace.raytrace import render
from spheretrace.scene import load_scene
from spheretrace.image import write_ppm

spheres, background = load_scene("playground/scenes/four_spheres.json")

# Camera pulled back and up a little from the origin
framebuffer = render(
    spheres,
    width=640,
    height=480,
    camera_pos=[0, 1, 4],
    background=background,
)
write_ppm(framebuffer, 640, 480, "four_spheres.ppm")
