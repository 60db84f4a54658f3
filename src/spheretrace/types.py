from jaxtyping import Float, Array, Bool

Vec3 = Float[Array, "3"]
Vec3arr = Float[Array, "n 3"]
FloatArr = Float[Array, "n"]
BoolArr = Bool[Array, "n"]
Framebuffer = Float[Array, "pixels 3"]
