"""Rendering of terminal screens as images and animated GIF files

Each character cell of the screen is drawn as a rectangle of font_size x
2 * font_size pixels filled with the background color of the cell, on top of
which the bitmap glyph of the character is drawn in the color of the text.
"""
import functools
import logging
import os.path
from collections import namedtuple

from PIL import Image, ImageDraw

from termtogif import glyphs
from termtogif import term

logger = logging.getLogger(__name__)

Animation = namedtuple('Animation', ['width', 'height', 'frames'])
Animation.__doc__ = 'Sequence of images of width x height pixels'

AnimationFrame = namedtuple('AnimationFrame', ['image', 'delay'])
AnimationFrame.__doc__ = 'Image of the animation and its display time in centiseconds'

# Offset of the underline from the bottom of the cell in pixels
UNDERLINE_OFFSET = 2

# Frames are logged every LOG_INTERVAL frames while rendering
LOG_INTERVAL = 100


class AnimationError(Exception):
    pass


def cell_size(font_size):
    """Return the width and the height of a character cell in pixels"""
    return font_size, 2 * font_size


def glyph_scale_factor(font_size):
    """Return the scale factor of glyphs for cells of 'font_size' pixels wide,
    font_size / 8 with halves rounded up"""
    return max(1, int(font_size / 8 + 0.5))


@functools.lru_cache(maxsize=None)
def _glyph_mask(bitmap, factor):
    """Return a mask of 'bitmap' scaled by 'factor' (mode 'L', 255 where the
    glyph is drawn)

    Masks are cached by bitmap: all the characters without a glyph share the
    mask of the unknown glyph.
    """
    bitmap = glyphs.scale(bitmap, factor)
    mask = Image.new('L', (glyphs.width(bitmap), len(bitmap)), 0)
    mask.putdata([255 if pixel else 0 for row in bitmap for pixel in row])
    return mask


def _draw_glyph(image, cell, left, top, cell_width, cell_height, factor):
    """Draw the glyph of 'cell' centered in the cell rectangle whose upper
    left corner is (left, top). Glyph pixels outside the rectangle are
    clipped."""
    mask = _glyph_mask(glyphs.lookup(cell.text), factor)
    mask_width, mask_height = mask.size
    offset_x = (cell_width - mask_width) // 2
    offset_y = (cell_height - mask_height) // 2
    if offset_x < 0 or offset_y < 0:
        crop_x, crop_y = max(-offset_x, 0), max(-offset_y, 0)
        mask = mask.crop((crop_x, crop_y,
                          crop_x + min(mask_width, cell_width),
                          crop_y + min(mask_height, cell_height)))
        offset_x, offset_y = max(offset_x, 0), max(offset_y, 0)

    image.paste(cell.color, (left + offset_x, top + offset_y), mask)


def _render_buffer(buffer, font_size):
    """Return an RGB image of the screen buffer

    :param buffer: 2D array of CharacterCell (list of lines)
    :param font_size: Width of a character cell in pixels
    """
    cell_width, cell_height = cell_size(font_size)
    lines = len(buffer)
    columns = len(buffer[0]) if lines else 0
    image = Image.new('RGB', (columns * cell_width, lines * cell_height))
    draw = ImageDraw.Draw(image)
    factor = glyph_scale_factor(font_size)

    for row_number, row in enumerate(buffer):
        top = row_number * cell_height
        bottom = top + cell_height - 1
        for column, cell in enumerate(row):
            left = column * cell_width
            right = left + cell_width - 1
            draw.rectangle([left, top, right, bottom], fill=cell.background_color)

            if cell.text != ' ':
                _draw_glyph(image, cell, left, top, cell_width, cell_height, factor)

            if cell.underscore:
                underline_y = top + cell_height - UNDERLINE_OFFSET
                draw.line([left, underline_y, right, underline_y], fill=cell.color)

    return image


def render_grid_to_image(screen, font_size):
    """Return an RGB image of the current state of the screen

    The screen is left untouched.
    """
    return _render_buffer(screen.buffer, font_size)


def render_timeline(records, width, height, font_size, dark_theme=True,
                    speed=1.0, intro=True):
    """Replay a recording on a screen and return the resulting Animation

    :param records: Sequence of RecordedFrame
    :param width: Number of columns of the screen
    :param height: Number of lines of the screen
    :param font_size: Width of a character cell in pixels
    :param dark_theme: Use the dark theme if True, the light one otherwise
    :param speed: Speed multiplier applied to frame delays
    :param intro: Add a title before the recording and a closing message
    after it
    """
    records = list(records)
    if not records:
        raise AnimationError('Nothing to render: the recording contains no frames')

    if intro:
        records = term.enhance_recording(records)

    cell_width, cell_height = cell_size(font_size)
    frames = []
    for frame_count, timed_frame in enumerate(term.timed_frames(records, width, height,
                                                                dark_theme, speed)):
        image = _render_buffer(timed_frame.buffer, font_size)
        frames.append(AnimationFrame(image, timed_frame.delay))
        if (frame_count + 1) % LOG_INTERVAL == 0:
            logger.debug('{} frames rendered'.format(frame_count + 1))

    return Animation(width * cell_width, height * cell_height, frames)


def merge_identical_frames(frames):
    """Return the frames with each run of consecutive identical images
    replaced by a single frame lasting the sum of their delays

    The delay of a merged frame may exceed term.MAX_DELAY, which bounds the
    time between two frames of the recording, not the time a picture stays
    on screen. The total duration of the animation is unchanged.
    """
    merged = []
    previous_data = None
    for frame in frames:
        data = frame.image.tobytes()
        if merged and data == previous_data:
            merged[-1] = merged[-1]._replace(delay=merged[-1].delay + frame.delay)
        else:
            merged.append(frame)
        previous_data = data

    return merged


def render_animation(animation, filename):
    """Save the animation as an infinitely looping GIF file

    Frames identical to the previous one are merged with
    `merge_identical_frames` before writing.
    """
    if not animation.frames:
        raise AnimationError('Nothing to render: the animation contains no frames')

    frames = merge_identical_frames(animation.frames)
    if len(frames) < len(animation.frames):
        logger.debug('Merged {} frames identical to the previous one'
                     .format(len(animation.frames) - len(frames)))
    images = [frame.image for frame in frames]
    # GIF delays are stored in centiseconds, Pillow expects milliseconds
    durations = [frame.delay * 10 for frame in frames]
    logger.debug('Writing {} frames ({}x{}) to {}'
                 .format(len(images), animation.width, animation.height, filename))
    images[0].save(filename, format='GIF', save_all=True,
                   append_images=images[1:], duration=durations, loop=0)


def render_still_frames(animation, directory):
    """Save each frame of the animation as a PNG file in 'directory'"""
    for frame_count, frame in enumerate(animation.frames):
        filename = os.path.join(directory, 'termtogif_{:05}.png'.format(frame_count))
        frame.image.save(filename, format='PNG')
