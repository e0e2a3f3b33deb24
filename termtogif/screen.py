"""Character cell grid of the virtual terminal

The grid has a fixed size for its whole lifetime. The cursor always points
to a valid cell: every operation moving it clamps or wraps its coordinates
instead of failing.
"""
from collections import namedtuple

from termtogif import colors

_CELL_ATTRIBUTES = ['text', 'color', 'background_color', 'bold', 'italics',
                    'underscore']
_CharacterCell = namedtuple('_CharacterCell', _CELL_ATTRIBUTES)
_CharacterCell.__doc__ = 'Representation of a character cell'
_CharacterCell.text.__doc__ = 'Character displayed in the cell'
_CharacterCell.color.__doc__ = 'Color of the text'
_CharacterCell.background_color.__doc__ = 'Background color of the cell'
_CharacterCell.bold.__doc__ = 'Bold modificator flag'
_CharacterCell.italics.__doc__ = 'Italics modificator flag'
_CharacterCell.underscore.__doc__ = 'Underscore modificator flag'


class CharacterCell(_CharacterCell):
    @classmethod
    def from_style(cls, text, style):
        return cls(text, style.color, style.background_color, style.bold,
                   style.italics, style.underscore)

    @property
    def style(self):
        return colors.Style(self.color, self.background_color, self.bold,
                            self.italics, self.underscore)


# Regions of the screen cleared by clear_region
CLEAR_TO_END_OF_SCREEN = 'cursor to end of screen'
CLEAR_FROM_START_OF_SCREEN = 'start of screen to cursor'
CLEAR_SCREEN = 'entire screen'
CLEAR_TO_END_OF_LINE = 'cursor to end of line'
CLEAR_FROM_START_OF_LINE = 'start of line to cursor'
CLEAR_LINE = 'entire line'

# Mapping between the parameter of ED and EL escape sequences and regions
ERASE_IN_DISPLAY_MODES = {
    0: CLEAR_TO_END_OF_SCREEN,
    1: CLEAR_FROM_START_OF_SCREEN,
    2: CLEAR_SCREEN,
    3: CLEAR_SCREEN,
}
ERASE_IN_LINE_MODES = {
    0: CLEAR_TO_END_OF_LINE,
    1: CLEAR_FROM_START_OF_LINE,
    2: CLEAR_LINE,
}

TAB_WIDTH = 8


class Screen:
    """Grid of 'columns' x 'lines' character cells with a cursor

    Characters are written at the cursor position using the active style,
    which is changed by SGR sequences.
    """
    def __init__(self, columns, lines, theme=colors.DARK_THEME):
        if columns < 1 or lines < 1:
            raise ValueError('Invalid screen geometry: {}x{}'.format(columns, lines))
        self.columns = columns
        self.lines = lines
        self.theme = theme
        self.style = colors.default_style(theme)
        self.cursor_x = 0
        self.cursor_y = 0
        blank = self._blank_cell()
        self.buffer = [[blank] * columns for _ in range(lines)]

    def __repr__(self):
        return '{}({}, {})'.format(type(self).__name__, self.columns, self.lines)

    @property
    def display(self):
        """Text content of each line of the screen"""
        return [''.join(cell.text for cell in row) for row in self.buffer]

    def snapshot(self):
        """Return an immutable copy of the buffer"""
        return tuple(tuple(row) for row in self.buffer)

    def _blank_cell(self):
        # Cleared cells take the colors of the active style, not the ones
        # of the theme
        return CharacterCell(' ', self.style.color, self.style.background_color,
                             False, False, False)

    def _next_line(self):
        if self.cursor_y == self.lines - 1:
            self.scroll_up()
        else:
            self.cursor_y += 1

    def draw(self, char):
        """Write 'char' at the cursor position and advance the cursor

        Writing on the last column moves the cursor to the start of the
        next line, scrolling the screen if the cursor was on the last line.
        """
        self.buffer[self.cursor_y][self.cursor_x] = CharacterCell.from_style(char, self.style)
        self.cursor_x += 1
        if self.cursor_x >= self.columns:
            self.cursor_x = 0
            self._next_line()

    write = draw

    def linefeed(self):
        self.cursor_x = 0
        self._next_line()

    def carriage_return(self):
        self.cursor_x = 0

    def tab(self):
        """Move the cursor to the next tab stop (every 8 columns)"""
        self.cursor_x = (self.cursor_x // TAB_WIDTH + 1) * TAB_WIDTH
        if self.cursor_x >= self.columns:
            self.cursor_x = 0
            self._next_line()

    def backspace(self):
        """Move the cursor one column to the left without erasing"""
        self.move_cursor(-1, 0)

    def move_cursor(self, dx, dy):
        self.cursor_x = min(max(self.cursor_x + dx, 0), self.columns - 1)
        self.cursor_y = min(max(self.cursor_y + dy, 0), self.lines - 1)

    def set_cursor(self, row=None, column=None):
        """Move the cursor to an absolute position

        'row' and 'column' are 1-based. A missing (None) or null value
        stands for the first row or column. The position is clamped to the
        screen.
        """
        row = max((row or 1) - 1, 0)
        column = max((column or 1) - 1, 0)
        self.cursor_y = min(row, self.lines - 1)
        self.cursor_x = min(column, self.columns - 1)

    def _clear_cells(self, row, start, end):
        blank = self._blank_cell()
        self.buffer[row][start:end] = [blank] * (end - start)

    def clear_region(self, region):
        """Blank a region of the screen relative to the cursor

        Bounds involving the cursor are inclusive. Unknown regions are
        ignored.
        """
        x, y = self.cursor_x, self.cursor_y
        if region == CLEAR_TO_END_OF_SCREEN:
            self._clear_cells(y, x, self.columns)
            for row in range(y + 1, self.lines):
                self._clear_cells(row, 0, self.columns)
        elif region == CLEAR_FROM_START_OF_SCREEN:
            for row in range(y):
                self._clear_cells(row, 0, self.columns)
            self._clear_cells(y, 0, x + 1)
        elif region == CLEAR_SCREEN:
            for row in range(self.lines):
                self._clear_cells(row, 0, self.columns)
        elif region == CLEAR_TO_END_OF_LINE:
            self._clear_cells(y, x, self.columns)
        elif region == CLEAR_FROM_START_OF_LINE:
            self._clear_cells(y, 0, x + 1)
        elif region == CLEAR_LINE:
            self._clear_cells(y, 0, self.columns)

    def erase_in_display(self, mode=0):
        self.clear_region(ERASE_IN_DISPLAY_MODES.get(mode))

    def erase_in_line(self, mode=0):
        self.clear_region(ERASE_IN_LINE_MODES.get(mode))

    def scroll_up(self):
        """Shift all lines up by one, discarding the first line

        The new last line is blank. The cursor does not move.
        """
        del self.buffer[0]
        blank = self._blank_cell()
        self.buffer.append([blank] * self.columns)

    def select_graphic_rendition(self, params):
        self.style = colors.select_graphic_rendition(self.style, params,
                                                     self.theme)
