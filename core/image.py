"""
Pixel buffer helpers built on Pillow.
"""
from PIL import Image


def is_same_image(a: Image.Image, b: Image.Image) -> bool:
    """
    Bit-exact comparison of two pixel buffers.

    Images with a different mode or size are never the same. Indexed
    images compare palette indices, not the colors they resolve to.
    """
    if a is b:
        return True
    if a.mode != b.mode or a.size != b.size:
        return False
    return a.tobytes() == b.tobytes()
