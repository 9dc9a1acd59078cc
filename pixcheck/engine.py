#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

# pylint: disable=too-many-arguments

"""
Compositing engines under test.

An engine is driven only through the Engine interface. SoftwareEngine
is a self-contained numpy implementation, used to exercise the driver
and as a baseline; PixmanEngine (pixcheck.pixman) drives a real
library.
"""

from abc import ABCMeta, abstractmethod
from pydoc import locate
from typing import NamedTuple

import numpy as np

from pixcheck.blending import evaluate_array
from pixcheck.color import Color
from pixcheck.compose import broadcasts_mask_alpha
from pixcheck.errors import EngineError
from pixcheck.format import FormatDescriptor, PixelStorage, \
        decode_array, encode_array, encode_short
from pixcheck.log import LOG_TRACE, Log
from pixcheck.types import ByteOrder, Operator, RepeatMode


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int


class Engine(object, metaclass=ABCMeta):
    """
    Interface of a compositing engine

    Image handles are opaque to callers. Every handle returned by
    create_image or create_solid_image must be passed to release.
    """

    def __init__(self, storage: PixelStorage = None):
        if storage is None:
            storage = PixelStorage.native()
        self._storage = storage
        self._logger = Log.get('pixcheck.engine')


    @property
    def name(self) -> str:
        return self.__class__.__name__


    @property
    def storage(self) -> PixelStorage:
        """
        Layout of the values returned by read_raw_pixel
        """
        return self._storage


    @abstractmethod
    def create_image(self, fmt: FormatDescriptor, width: int, height: int, data=None):
        """
        Create a buffered image

        :param fmt: Pixel format
        :param width: Width in pixels
        :param height: Height in pixels
        :param data: Optional initial raw pixels, row-major

        :return: The image handle
        """


    @abstractmethod
    def create_solid_image(self, color: Color):
        """
        Create an unbounded single-color image with no buffer

        :param color: Premultiplied color
        """


    @abstractmethod
    def fill_rectangle(self, image, color: Color, rect: Rect, op: Operator = Operator.SRC):
        """
        Fill a rectangle of a buffered image with a color
        """


    @abstractmethod
    def set_repeat(self, image, mode: RepeatMode):
        pass


    @abstractmethod
    def set_component_alpha(self, image, enable: bool):
        pass


    @abstractmethod
    def composite(self, op: Operator, src, mask, dst,
                  src_x: int, src_y: int, mask_x: int, mask_y: int,
                  dst_x: int, dst_y: int, width: int, height: int):
        """
        Composite src through mask (may be None) onto dst
        """


    @abstractmethod
    def read_raw_pixel(self, image) -> int:
        """
        The first pixel of a buffered image as one unsigned word,
        laid out as described by storage
        """


    @abstractmethod
    def release(self, image):
        pass


class SoftwareImage(object):
    """
    Image of the software engine

    Buffered images keep packed pixels in a uint32 array. Solid images
    keep their color at the precision of the 16-bit fill color.
    """

    def __init__(self, fmt: FormatDescriptor = None, pixels: np.ndarray = None,
                 solid: Color = None):
        self.format = fmt
        self.pixels = pixels
        self.solid = solid
        self.repeat = RepeatMode.NONE
        self.component_alpha = False


    @property
    def is_solid(self) -> bool:
        return self.solid is not None


    @property
    def width(self) -> int:
        return self.pixels.shape[1]


    @property
    def height(self) -> int:
        return self.pixels.shape[0]


def _repeat_indices(coords: np.ndarray, size: int, mode: RepeatMode):
    """
    Map sample coordinates into [0, size) for a repeat mode

    :return: (indices, valid) where valid is False for samples that
             fall outside an unrepeated image
    """
    if mode is RepeatMode.NORMAL:
        return np.mod(coords, size), np.ones_like(coords, dtype=bool)

    if mode is RepeatMode.PAD:
        return np.clip(coords, 0, size - 1), np.ones_like(coords, dtype=bool)

    if mode is RepeatMode.REFLECT:
        period = np.mod(coords, 2 * size)
        return np.where(period < size, period, 2 * size - 1 - period), \
                np.ones_like(coords, dtype=bool)

    valid = (coords >= 0) & (coords < size)
    return np.clip(coords, 0, size - 1), valid


class SoftwareEngine(Engine):
    """
    Floating point compositing engine built on numpy

    Inputs are decoded from their packed formats, composited in float
    and packed back with rounding, so its results differ from exact
    arithmetic only by quantization.
    """

    def __init__(self, storage: PixelStorage = None):
        super().__init__(storage)
        self._live = set()


    @property
    def live_images(self) -> int:
        """
        Number of images created and not yet released
        """
        return len(self._live)


    def _track(self, image):
        self._live.add(id(image))
        return image


    def create_image(self, fmt, width, height, data=None):
        pixels = np.zeros((height, width), dtype=np.uint32)
        if data is not None:
            pixels[:, :] = np.asarray(data, dtype=np.uint32).reshape((height, width))
        return self._track(SoftwareImage(fmt=fmt, pixels=pixels))


    def create_solid_image(self, color):
        solid = Color(*[x / 0xffff for x in color.to_short()])
        return self._track(SoftwareImage(solid=solid))


    def fill_rectangle(self, image, color, rect, op=Operator.SRC):
        if image.is_solid:
            raise EngineError('Cannot fill a solid image')

        if op is not Operator.SRC:
            solid = self.create_solid_image(color)
            try:
                self.composite(op, solid, None, image, 0, 0, 0, 0,
                               rect.x, rect.y, rect.width, rect.height)
            finally:
                self.release(solid)
            return

        x0, y0 = max(rect.x, 0), max(rect.y, 0)
        x1 = min(rect.x + rect.width, image.width)
        y1 = min(rect.y + rect.height, image.height)
        if x1 > x0 and y1 > y0:
            image.pixels[y0:y1, x0:x1] = encode_short(color.to_short(), image.format)


    def set_repeat(self, image, mode):
        image.repeat = mode


    def set_component_alpha(self, image, enable):
        image.component_alpha = bool(enable)


    def _sample(self, image, x, y, width, height) -> np.ndarray:
        if image.is_solid:
            return np.broadcast_to(np.array(image.solid, dtype=np.float64),
                                   (height, width, 4)).copy()

        xs, xvalid = _repeat_indices(np.arange(x, x + width), image.width, image.repeat)
        ys, yvalid = _repeat_indices(np.arange(y, y + height), image.height, image.repeat)

        colors = decode_array(image.pixels[np.ix_(ys, xs)], image.format)
        colors[~np.outer(yvalid, xvalid)] = 0.0
        return colors


    def composite(self, op, src, mask, dst, src_x, src_y, mask_x, mask_y,
                  dst_x, dst_y, width, height):
        if dst.is_solid:
            raise EngineError('Cannot composite onto a solid image')

        # clip to the destination
        x0, y0 = max(dst_x, 0), max(dst_y, 0)
        x1 = min(dst_x + width, dst.width)
        y1 = min(dst_y + height, dst.height)
        if x1 <= x0 or y1 <= y0:
            return
        w, h = x1 - x0, y1 - y0
        dx, dy = x0 - dst_x, y0 - dst_y

        source = self._sample(src, src_x + dx, src_y + dy, w, h)
        dest = decode_array(dst.pixels[y0:y1, x0:x1], dst.format)

        if mask is None:
            value = source
            alpha = source[..., 3:4]
        else:
            coverage = self._sample(mask, mask_x + dx, mask_y + dy, w, h)
            if mask.component_alpha:
                if not mask.is_solid and broadcasts_mask_alpha(mask.format):
                    coverage[..., :3] = coverage[..., 3:4]
                value = source * coverage
                alpha = source[..., 3:4] * coverage
            else:
                value = source * coverage[..., 3:4]
                alpha = source[..., 3:4] * coverage[..., 3:4]

        result = evaluate_array(op, value, dest, alpha, dest[..., 3:4])
        dst.pixels[y0:y1, x0:x1] = encode_array(result, dst.format)

        self._logger.log(LOG_TRACE, '%s: %s onto %s at %d,%d %dx%d', self.name, op.name,
                         dst.format.name, x0, y0, w, h)


    def read_raw_pixel(self, image):
        if image.is_solid:
            raise EngineError('Solid images have no pixel data')

        raw = int(image.pixels[0, 0])
        if self.storage.byte_order is ByteOrder.BIG:
            raw <<= self.storage.word_bits - image.format.bpp
        return raw


    def release(self, image):
        if id(image) not in self._live:
            raise EngineError('Release of unknown or released image')
        self._live.discard(id(image))


ENGINES = {
    'software': 'pixcheck.engine.SoftwareEngine',
    'pixman': 'pixcheck.pixman.PixmanEngine',
}


def create_engine(name: str, storage: PixelStorage = None) -> Engine:
    """
    Instantiate an engine by name

    :param name: Key of ENGINES
    :param storage: Pixel storage layout, native if None
    """
    if name not in ENGINES:
        raise EngineError('Unknown engine: %s (available: %s)'
                          % (name, ', '.join(sorted(ENGINES))))

    engine_class = locate(ENGINES[name])
    if engine_class is None:
        raise EngineError('Unable to load engine %s' % name)

    return engine_class(storage=storage)
