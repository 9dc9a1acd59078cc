#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name, too-many-arguments

"""
Engine backed by the pixman library, loaded with ctypes.
"""

import ctypes
import ctypes.util

from pixcheck.color import Color
from pixcheck.engine import Engine, Rect
from pixcheck.errors import EngineError
from pixcheck.format import FormatDescriptor, PixelStorage
from pixcheck.types import Operator, RepeatMode


LIBRARY_NAMES = ('pixman-1', 'libpixman-1.so.0', 'libpixman-1.0.dylib')


class PixmanColor(ctypes.Structure):
    _fields_ = [('red', ctypes.c_uint16),
                ('green', ctypes.c_uint16),
                ('blue', ctypes.c_uint16),
                ('alpha', ctypes.c_uint16)]


class PixmanRectangle16(ctypes.Structure):
    _fields_ = [('x', ctypes.c_int16),
                ('y', ctypes.c_int16),
                ('width', ctypes.c_uint16),
                ('height', ctypes.c_uint16)]


_PROTOTYPES = {
    'pixman_image_create_bits': (ctypes.c_void_p, [ctypes.c_int, ctypes.c_int, ctypes.c_int,
                                                   ctypes.c_void_p, ctypes.c_int]),
    'pixman_image_create_solid_fill': (ctypes.c_void_p, [ctypes.POINTER(PixmanColor)]),
    'pixman_image_fill_rectangles': (ctypes.c_int, [ctypes.c_int, ctypes.c_void_p,
                                                    ctypes.POINTER(PixmanColor), ctypes.c_int,
                                                    ctypes.POINTER(PixmanRectangle16)]),
    'pixman_image_set_repeat': (None, [ctypes.c_void_p, ctypes.c_int]),
    'pixman_image_set_component_alpha': (None, [ctypes.c_void_p, ctypes.c_int]),
    'pixman_image_composite': (None, [ctypes.c_int, ctypes.c_void_p, ctypes.c_void_p,
                                      ctypes.c_void_p] + [ctypes.c_int16] * 6
                               + [ctypes.c_uint16] * 2),
    'pixman_image_get_data': (ctypes.c_void_p, [ctypes.c_void_p]),
    'pixman_image_get_stride': (ctypes.c_int, [ctypes.c_void_p]),
    'pixman_image_unref': (ctypes.c_int, [ctypes.c_void_p]),
}


def load_library(names=LIBRARY_NAMES) -> ctypes.CDLL:
    """
    Load libpixman and declare the functions we call

    :raises EngineError: if no candidate library can be loaded
    """
    errors = []
    for name in names:
        path = ctypes.util.find_library(name) or name
        try:
            lib = ctypes.CDLL(path)
        except OSError as err:
            errors.append(str(err))
            continue

        for func_name, (restype, argtypes) in _PROTOTYPES.items():
            func = getattr(lib, func_name)
            func.restype = restype
            func.argtypes = argtypes
        return lib

    raise EngineError('Unable to load pixman: %s' % '; '.join(errors))


def pixman_color(color: Color) -> PixmanColor:
    red, green, blue, alpha = color.to_short()
    return PixmanColor(red, green, blue, alpha)


class PixmanImage(object):
    def __init__(self, pointer: int, fmt: FormatDescriptor = None):
        self.pointer = pointer
        self.format = fmt


class PixmanEngine(Engine):
    """
    The pixman compositing library

    Format and operator codes are passed through unchanged: pixcheck
    uses pixman's own numbering.
    """

    _lib = None

    def __init__(self, storage: PixelStorage = None):
        super().__init__(storage)
        if PixmanEngine._lib is None:
            PixmanEngine._lib = load_library()
        self._lib = PixmanEngine._lib


    def create_image(self, fmt, width, height, data=None):
        if data is not None:
            raise EngineError('Initial pixel data is not supported, use fill_rectangle')

        pointer = self._lib.pixman_image_create_bits(fmt.code, width, height, None, 0)
        if not pointer:
            raise EngineError('pixman_image_create_bits failed for %s %dx%d'
                              % (fmt.name, width, height))
        return PixmanImage(pointer, fmt)


    def create_solid_image(self, color):
        pointer = self._lib.pixman_image_create_solid_fill(ctypes.byref(pixman_color(color)))
        if not pointer:
            raise EngineError('pixman_image_create_solid_fill failed')
        return PixmanImage(pointer)


    def fill_rectangle(self, image, color, rect: Rect, op=Operator.SRC):
        box = PixmanRectangle16(rect.x, rect.y, rect.width, rect.height)
        if not self._lib.pixman_image_fill_rectangles(op.opcode, image.pointer,
                                                      ctypes.byref(pixman_color(color)),
                                                      1, ctypes.byref(box)):
            raise EngineError('pixman_image_fill_rectangles failed')


    def set_repeat(self, image, mode: RepeatMode):
        self._lib.pixman_image_set_repeat(image.pointer, mode.value)


    def set_component_alpha(self, image, enable):
        self._lib.pixman_image_set_component_alpha(image.pointer, 1 if enable else 0)


    def composite(self, op, src, mask, dst, src_x, src_y, mask_x, mask_y,
                  dst_x, dst_y, width, height):
        self._lib.pixman_image_composite(op.opcode, src.pointer,
                                         mask.pointer if mask is not None else None,
                                         dst.pointer, src_x, src_y, mask_x, mask_y,
                                         dst_x, dst_y, width, height)


    def read_raw_pixel(self, image):
        if image.format is None:
            raise EngineError('Solid images have no pixel data')

        stride = self._lib.pixman_image_get_stride(image.pointer)
        if self.storage.word_bytes > abs(stride):
            raise EngineError('A %d-bit read overruns a %d byte row'
                              % (self.storage.word_bits, abs(stride)))

        data = self._lib.pixman_image_get_data(image.pointer)
        raw = ctypes.string_at(data, self.storage.word_bytes)
        return int.from_bytes(raw, self.storage.byte_order.value)


    def release(self, image):
        self._lib.pixman_image_unref(image.pointer)
        image.pointer = None
