"""
GIF output.

The engine has no GIF writer, so GIF requests are encoded as one of the
allowed formats first and then re-encoded here. The encoder is optional:
``detect_gif_encoder`` returns None when Pillow cannot save GIF.
"""
from io import BytesIO
from typing import Optional

from loguru import logger
from PIL import Image

# Alpha below this becomes the transparent palette entry
TRANSPARENCY_THRESHOLD = 128


class PillowGifEncoder:
    """GIF encoder capability backed by Pillow."""

    def decode(self, buffer: bytes) -> Image.Image:
        img = Image.open(BytesIO(buffer))
        img.load()
        return img

    def encode(self, raster: Image.Image, interlace: bool = False, has_alpha: bool = False) -> bytes:
        """
        Quantize ``raster`` to a palette and write it as GIF.

        With ``has_alpha``, pixels under the transparency threshold share a
        single reserved palette index marked transparent.
        """
        out = BytesIO()

        if has_alpha and raster.mode in ("RGBA", "LA"):
            rgba = raster.convert("RGBA")
            alpha = rgba.getchannel("A")
            # 255 colours, index 255 reserved for transparency
            paletted = rgba.convert("RGB").quantize(colors=255)
            palette = (paletted.getpalette() or [])[:255 * 3]
            paletted.putpalette(palette + [0] * (256 * 3 - len(palette)))
            transparent = alpha.point(lambda a: 255 if a < TRANSPARENCY_THRESHOLD else 0)
            paletted.paste(255, mask=transparent)
            paletted.save(out, format="GIF", interlace=interlace, transparency=255)
        else:
            paletted = raster.convert("RGB").quantize(colors=256)
            paletted.save(out, format="GIF", interlace=interlace)

        return out.getvalue()


def detect_gif_encoder() -> Optional[PillowGifEncoder]:
    """GIF encoder when this Pillow build can write GIF, else None"""
    Image.init()
    if "GIF" not in Image.SAVE:
        logger.debug("Pillow has no GIF writer; GIF output disabled")
        return None
    return PillowGifEncoder()
