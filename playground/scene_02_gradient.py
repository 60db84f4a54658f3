from spheretrace.raytrace import render_gradient
from spheretrace.image import to_image

width, height = 1024, 768

framebuffer = render_gradient(width, height)
img = to_image(framebuffer, width, height)
img.save("gradient.ppm", format="PPM")
img.show()
