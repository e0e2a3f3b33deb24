import json
import pkgutil

PKG_GLYPHS_PATH = 'data/glyphs.json'

DEFAULT_GEOMETRY = (80, 24)
DEFAULT_FONT_SIZE = 16
DEFAULT_SPEED = 1.0
DEFAULT_RECORDING = 'demo.json'
DEFAULT_OUTPUT = 'output.gif'

# Seconds between two autosaves of a recording in progress
AUTOSAVE_INTERVAL = 30


def validate_geometry(screen_geometry):
    """Raise ValueError if 'screen_geometry' does not conform to <integer>x<integer> format"""
    columns, rows = [int(value) for value in screen_geometry.lower().split('x')]
    if columns <= 0 or rows <= 0:
        raise ValueError('Invalid value for screen-geometry option: "{}"'.format(screen_geometry))
    return columns, rows


def validate_speed(speed):
    """Raise ValueError if 'speed' is not a strictly positive number"""
    value = float(speed)
    if not value > 0:
        raise ValueError('speed must be a number greater than 0')
    return value


def validate_font_size(font_size):
    if font_size.isdecimal() and int(font_size) >= 1:
        return int(font_size)
    raise ValueError('font size must be an integer greater than 0')


def default_glyphs():
    """Return mapping between a character and the rows of its bitmap

    Each row is a string where '#' marks a set pixel and '.' a clear one.
    """
    bstream = pkgutil.get_data(__name__, PKG_GLYPHS_PATH)
    return json.loads(bstream.decode('utf-8'))
