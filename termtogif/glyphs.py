"""Bitmap font used to draw characters on rendered frames

Every glyph is 7 pixels tall and between 1 and 5 pixels wide. Characters
missing from the table are drawn with the "unknown" glyph, a bordered box.
"""
import functools
from types import MappingProxyType

from termtogif import config

GLYPH_HEIGHT = 7
UNKNOWN = '\ufffd'

_PIXEL_SET = '#'


@functools.lru_cache(maxsize=None)
def glyph_table():
    """Return the read-only mapping between characters and their bitmaps

    A bitmap is a tuple of rows, each row being a tuple of booleans. The
    table is built on first use and shared by all callers.
    """
    table = {}
    for char, rows in config.default_glyphs().items():
        bitmap = tuple(tuple(pixel == _PIXEL_SET for pixel in row)
                       for row in rows)
        if len(bitmap) != GLYPH_HEIGHT:
            raise ValueError('Invalid glyph for {!r}: expected {} rows, got {}'
                             .format(char, GLYPH_HEIGHT, len(bitmap)))
        table[char] = bitmap

    return MappingProxyType(table)


def lookup(char):
    """Return the bitmap of 'char', or the unknown glyph if there is none"""
    table = glyph_table()
    try:
        return table[char]
    except KeyError:
        return table[UNKNOWN]


def scale(bitmap, factor):
    """Return a copy of 'bitmap' where each pixel is turned into a block of
    factor x factor identical pixels

    A factor lower than or equal to 1 returns the bitmap unchanged.
    """
    if factor <= 1:
        return bitmap

    return tuple(
        tuple(pixel for pixel in row for _ in range(factor))
        for row in bitmap
        for _ in range(factor)
    )


def width(bitmap):
    return len(bitmap[0]) if bitmap else 0
