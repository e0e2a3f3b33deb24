"""Interpreter of the ANSI escape sequences found in terminal output

Only the subset of sequences needed to replay common shell sessions is
supported: C0 control characters (LF, CR, HT, BS) and CSI sequences for
cursor movement, erasure and SGR attributes. Anything else is dropped
without affecting the screen.
"""
import string

from pyte import control as ctrl
from pyte import escape as esc

from termtogif import colors

_CSI_INTRODUCER = '['


def _parse_number(param, default):
    if param.isdecimal() and len(param) <= colors.MAX_PARAM_DIGITS:
        return int(param)
    return default


def _parse_count(params):
    """Repetition count of a cursor movement: 1 unless 'params' is a number"""
    return _parse_number(params, 1)


def _parse_mode(params):
    """Mode of an erase sequence: 0 unless 'params' is a number"""
    return _parse_number(params, 0)


def _parse_position(param):
    return _parse_number(param, None)


class Stream:
    """Feed text to a Screen, interpreting control characters and escape
    sequences

    The screen and its active style persist between calls to `feed`, so
    consecutive chunks of terminal output behave like a single stream. An
    escape sequence is expected to be entirely contained in one chunk: an
    incomplete sequence at the end of a chunk is dropped.
    """
    def __init__(self, screen):
        self.screen = screen
        self.basic = {
            ctrl.LF: screen.linefeed,
            ctrl.CR: screen.carriage_return,
            ctrl.HT: screen.tab,
            ctrl.BS: screen.backspace,
        }
        self.csi = {
            esc.SGR: self._select_graphic_rendition,
            esc.CUU: lambda params: screen.move_cursor(0, -_parse_count(params)),
            esc.CUD: lambda params: screen.move_cursor(0, _parse_count(params)),
            esc.CUF: lambda params: screen.move_cursor(_parse_count(params), 0),
            esc.CUB: lambda params: screen.move_cursor(-_parse_count(params), 0),
            esc.CUP: self._cursor_position,
            esc.HVP: self._cursor_position,
            esc.ED: lambda params: screen.erase_in_display(_parse_mode(params)),
            esc.EL: lambda params: screen.erase_in_line(_parse_mode(params)),
        }

    def feed(self, data):
        chars = iter(data)
        for char in chars:
            if char == ctrl.ESC:
                self._escape(chars)
            elif char in self.basic:
                self.basic[char]()
            else:
                self.screen.draw(char)

    def _escape(self, chars):
        # Only CSI sequences are supported: the character following ESC is
        # dropped along with it if it does not introduce a CSI sequence
        if next(chars, None) != _CSI_INTRODUCER:
            return

        params = []
        for char in chars:
            if char in string.ascii_letters:
                self.dispatch_csi(char, ''.join(params))
                return
            params.append(char)
        # No final character before the end of the chunk: the sequence is
        # dropped

    def dispatch_csi(self, command, params):
        """Execute the CSI sequence made of 'params' and the final character
        'command'. Unsupported commands are ignored."""
        handler = self.csi.get(command)
        if handler is not None:
            handler(params)

    def _select_graphic_rendition(self, params):
        self.screen.select_graphic_rendition(params.split(';'))

    def _cursor_position(self, params):
        parts = params.split(';')
        row = _parse_position(parts[0])
        column = _parse_position(parts[1]) if len(parts) > 1 else None
        self.screen.set_cursor(row, column)
