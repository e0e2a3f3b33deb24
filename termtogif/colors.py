"""Color model of the virtual terminal

Colors are (red, green, blue) tuples of integers between 0 and 255. This
module resolves ANSI color codes to such tuples and applies SGR (Select
Graphic Rendition) parameters to the style used for newly written cells.
"""
from collections import namedtuple

# The 8 basic colors: black, red, green, yellow (brown), blue, magenta,
# cyan and white
BASIC_COLORS = (
    (0, 0, 0),
    (170, 0, 0),
    (0, 170, 0),
    (170, 85, 0),
    (0, 0, 170),
    (170, 0, 170),
    (0, 170, 170),
    (170, 170, 170),
)

BRIGHT_COLORS = (
    (85, 85, 85),
    (255, 85, 85),
    (85, 255, 85),
    (255, 255, 85),
    (85, 85, 255),
    (255, 85, 255),
    (85, 255, 255),
    (255, 255, 255),
)

Theme = namedtuple('Theme', ['color', 'background_color'])
Theme.__doc__ = 'Default colors of the terminal'

DARK_THEME = Theme((240, 240, 240), (30, 30, 30))
LIGHT_THEME = Theme((30, 30, 30), (245, 245, 245))

_STYLE_ATTRIBUTES = ['color', 'background_color', 'bold', 'italics',
                     'underscore']
Style = namedtuple('Style', _STYLE_ATTRIBUTES)
Style.__doc__ = 'Attributes applied to characters written on the screen'

# SGR codes
RESET = 0
BOLD = 1
ITALICS = 3
UNDERSCORE = 4
FG_EXTENDED = 38
BG_EXTENDED = 48
EXTENDED_256 = 5
EXTENDED_RGB = 2

# Numeric parameters of escape sequences with more digits are treated as
# invalid
MAX_PARAM_DIGITS = 16


def get_theme(dark_theme):
    return DARK_THEME if dark_theme else LIGHT_THEME


def default_style(theme):
    return Style(theme.color, theme.background_color, False, False, False)


def basic_color(index):
    return BASIC_COLORS[index]


def bright_color(index):
    return BRIGHT_COLORS[index]


def _cube_level(level):
    return 0 if level == 0 else level * 40 + 55


def color_256(index):
    """Return the color at position 'index' of the 256 color palette

    0-15: basic and bright colors
    16-231: 6x6x6 color cube
    232-255: grayscale ramp
    """
    if not 0 <= index <= 255:
        raise ValueError('Invalid 256 color palette index: {}'.format(index))

    if index < 8:
        return basic_color(index)
    if index < 16:
        return bright_color(index - 8)
    if index < 232:
        index -= 16
        return (_cube_level(index // 36 % 6),
                _cube_level(index // 6 % 6),
                _cube_level(index % 6))

    value = (index - 232) * 10 + 8
    return value, value, value


def _parse_code(param):
    """Return the integer value of an SGR parameter, or None if it is not a
    number or has more than MAX_PARAM_DIGITS digits. An empty parameter
    stands for 0."""
    if param == '':
        return 0
    if param.isdecimal() and len(param) <= MAX_PARAM_DIGITS:
        return int(param)
    return None


def _parse_channel(param):
    value = _parse_code(param)
    if value is None or value > 255:
        return None
    return value


def _extended_color(params, index):
    """Decode the color following a 38 or 48 code

    'params[index]' is the sub-mode (5 for a palette index, 2 for a RGB
    triple). Return a tuple made of the color (None if the sub-sequence is
    truncated or invalid) and the number of parameters consumed after the
    38/48 code.
    """
    if index >= len(params):
        return None, 0

    mode = _parse_code(params[index])
    if mode == EXTENDED_256:
        if index + 1 >= len(params):
            return None, len(params) - index
        palette_index = _parse_channel(params[index + 1])
        if palette_index is None:
            return None, 2
        return color_256(palette_index), 2

    if mode == EXTENDED_RGB:
        if index + 3 >= len(params):
            return None, len(params) - index
        channels = [_parse_channel(p) for p in params[index + 1:index + 4]]
        if None in channels:
            return None, 4
        return tuple(channels), 4

    return None, 1


def select_graphic_rendition(style, params, theme):
    """Return the style resulting from the application of SGR parameters

    :param style: Current Style
    :param params: List of parameters (strings) of the SGR sequence, in order
    :param theme: Theme providing the colors restored by a reset
    """
    if not params:
        params = ['']

    i = 0
    while i < len(params):
        code = _parse_code(params[i])
        i += 1
        if code is None:
            continue

        if code == RESET:
            style = default_style(theme)
        elif code == BOLD:
            style = style._replace(bold=True)
        elif code == ITALICS:
            style = style._replace(italics=True)
        elif code == UNDERSCORE:
            style = style._replace(underscore=True)
        elif 30 <= code <= 37:
            style = style._replace(color=basic_color(code - 30))
        elif 40 <= code <= 47:
            style = style._replace(background_color=basic_color(code - 40))
        elif 90 <= code <= 97:
            style = style._replace(color=bright_color(code - 90))
        elif 100 <= code <= 107:
            style = style._replace(background_color=bright_color(code - 100))
        elif code in (FG_EXTENDED, BG_EXTENDED):
            color, consumed = _extended_color(params, i)
            i += consumed
            if color is not None:
                if code == FG_EXTENDED:
                    style = style._replace(color=color)
                else:
                    style = style._replace(background_color=color)
        else:
            # Unsupported code: ignored
            pass

    return style
