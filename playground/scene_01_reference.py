from spheretrace import config
from spheretrace.raytrace import Camera, RaytraceRenderer
from spheretrace.objects import reference_scene
from spheretrace.image import write_ppm

cam = Camera(
    width=1024,
    height=768,
    fov=config.FOV,
    pos=[0, 0, 0],
)

renderer = RaytraceRenderer(
    cam=cam,
    ray_batch_size=100000,
)

spheres = reference_scene()

framebuffer = renderer.render(spheres)
write_ppm(framebuffer, cam.width, cam.height, "out.ppm")
