"""UNIX terminal recording and replay functionalities

This module exposes functions for
    - recording the output of a process as a list of frames (`record`)
    - replaying a recording on a terminal in real time (`play`)
    - computing the successive states of the screen from a recording, along
    with the time each state should be displayed (`timed_frames`)

A context manager named `TerminalMode` is also provided and is to be used with
the `record` function to ensure that the terminal state is always properly
restored, otherwise a failure during a call to `record` could render the
terminal unusable.
"""

import codecs
import fcntl
import os
import pty
import select
import struct
import termios
import time
import tty
from collections import namedtuple

from termtogif import colors
from termtogif.recording import RecordedFrame
from termtogif.screen import Screen
from termtogif.stream import Stream

TimedFrame = namedtuple('TimedFrame', ['time', 'delay', 'buffer'])
TimedFrame.__doc__ = 'State of the screen and its display time'
TimedFrame.time.__doc__ = 'Time of the frame in milliseconds'
TimedFrame.delay.__doc__ = 'Display time of the frame in centiseconds'
TimedFrame.buffer.__doc__ = 'Snapshot of the screen buffer'

# Frame delays in centiseconds
DEFAULT_DELAY = 10
MIN_DELAY = 2
MAX_DELAY = 500

# Frames added around the recording (times in milliseconds)
INTRO_TEXT = '\x1b[H\x1b[2J\x1b[1;32m# Terminal Recording\x1b[0m\n\n'
PROMPT_TEXT = '\x1b[1;34m$ \x1b[0m'
PROMPT_TIME = 1000
INTRO_DURATION = 1500
OUTRO_TEXT = '\n\n\x1b[1;32m# End of Recording\x1b[0m\n'
OUTRO_DELAY = 1000


class TerminalMode:
    """Context manager restoring the mode and the size of a terminal

    Recording switches the input terminal to raw mode. The original
    attributes are saved on entry and put back on exit, even if recording
    failed. Both steps are skipped when 'fileno' is not a terminal.
    """
    def __init__(self, fileno):
        self.fileno = fileno
        self.mode = None
        self.ttysize = None

    def __enter__(self):
        try:
            self.mode = tty.tcgetattr(self.fileno)
        except tty.error:
            pass

        try:
            columns, lines = os.get_terminal_size(self.fileno)
        except OSError:
            pass
        else:
            self.ttysize = struct.pack("HHHH", lines, columns, 0, 0)

        return self.mode, self.ttysize

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.ttysize is not None:
            fcntl.ioctl(self.fileno, termios.TIOCSWINSZ, self.ttysize)

        if self.mode is not None:
            tty.tcsetattr(self.fileno, tty.TCSAFLUSH, self.mode)


def _record(process_args, columns, lines, input_fileno, output_fileno):
    """Run a process in a pseudo-terminal and yield its raw output

    The child runs 'process_args' as the session leader of a new
    pseudo-terminal of 'columns' x 'lines' cells. The parent relays what
    the user types on 'input_fileno' to the child, copies the output of the
    child to 'output_fileno' and yields each chunk of output with the time
    at which it was read. This is pty.spawn from the standard library,
    turned into a generator.

    :return: Exit status of the child process
    """
    pid, master_fd = pty.fork()
    if pid == 0:
        # Child process - this call never returns
        os.execlp(process_args[0], *process_args)

    # Parent process
    ttysize = struct.pack("HHHH", lines, columns, 0, 0)
    fcntl.ioctl(master_fd, termios.TIOCSWINSZ, ttysize)

    try:
        tty.setraw(input_fileno)
    except tty.error:
        pass

    for data, capture_time in _capture_output(input_fileno, output_fileno, master_fd):
        yield data, capture_time

    os.close(master_fd)

    _, child_exit_status = os.waitpid(pid, 0)
    return child_exit_status


def _capture_output(input_fileno, output_fileno, master_fd, buffer_size=1024):
    """Relay data between the user and the pseudo-terminal until either side
    is closed, yielding (data, time.monotonic()) for each chunk of output"""
    rlist = [input_fileno, master_fd]
    xlist = [input_fileno, output_fileno, master_fd]

    xfds = []
    while not xfds:
        rfds, _, xfds = select.select(rlist, [], xlist)
        for fd in rfds:
            try:
                data = os.read(fd, buffer_size)
            except OSError:
                xfds.append(fd)
                continue

            if not data:
                xfds.append(fd)
                continue

            if fd == input_fileno:
                write_fileno = master_fd
            else:
                write_fileno = output_fileno
                yield data, time.monotonic()

            _write_all(write_fileno, data)


def _write_all(fileno, data):
    while data:
        n = os.write(fileno, data)
        data = data[n:]


def record(process_args, columns, lines, input_fileno, output_fileno):
    """Record the output of a process as a sequence of RecordedFrame

    The timestamp of each frame is the time elapsed in milliseconds between
    the start of the recording and the capture of its content. Timestamps
    never decrease. Chunks of output that decode to an empty string are
    not returned.

    :param process_args: Arguments required to spawn the process (list of
    string)
    :param columns: Width of the terminal screen (integer)
    :param lines: Height of the terminal screen (integer)
    :param input_fileno: File descriptor that will be used as the standard
    input of the process
    :param output_fileno: File descriptor that will be used as the standard
    output of the process

    When using `sys.stdout.fileno()` for `output_fileno` there is a risk
    that the terminal is left in an unusable state if `record` fails. To
    prevent this, `record` should be called inside the `TerminalMode`
    context manager.
    """
    start = time.monotonic()
    utf8_decoder = codecs.getincrementaldecoder('utf-8')('replace')
    for data, capture_time in _record(process_args, columns, lines, input_fileno,
                                      output_fileno):
        content = utf8_decoder.decode(data)
        if content:
            timestamp = int((capture_time - start) * 1000)
            yield RecordedFrame(content, timestamp)

    content = utf8_decoder.decode(b'', final=True)
    if content:
        yield RecordedFrame(content, int((time.monotonic() - start) * 1000))


def play(frames, output_fileno, speed=1.0, sleep=time.sleep):
    """Write the content of frames to output_fileno, waiting between two
    frames for the time elapsed between their capture divided by 'speed'"""
    previous_timestamp = None
    for frame in frames:
        if previous_timestamp is not None:
            elapsed = max(frame.timestamp - previous_timestamp, 0)
            sleep(elapsed / speed / 1000)
        _write_all(output_fileno, frame.content.encode('utf-8'))
        previous_timestamp = frame.timestamp


def enhance_recording(frames):
    """Return the frames of the recording surrounded by an introduction (a
    title and a prompt) and a closing message

    The original frames are delayed to leave time for the introduction.
    """
    enhanced = [
        RecordedFrame(INTRO_TEXT, 0),
        RecordedFrame(PROMPT_TEXT, PROMPT_TIME),
    ]
    enhanced.extend(RecordedFrame(frame.content, frame.timestamp + INTRO_DURATION)
                    for frame in frames)
    enhanced.append(RecordedFrame(OUTRO_TEXT, enhanced[-1].timestamp + OUTRO_DELAY))
    return enhanced


def frame_delay(previous_time, current_time, speed):
    """Return the display time in centiseconds of the frame shown at
    'current_time' after the frame shown at 'previous_time'

    Times are in milliseconds. A frame older than the previous one is given
    the minimum delay.
    """
    elapsed = max(current_time - previous_time, 0)
    # Halves are rounded up
    delay = int(elapsed / speed / 10 + 0.5)
    return min(max(delay, MIN_DELAY), MAX_DELAY)


def timed_frames(frames, columns, lines, dark_theme=True, speed=1.0):
    """Return a generator of TimedFrame computed from the frames of a
    recording

    The content of all frames is fed to a single screen. After each frame
    the state of the screen is captured along with its display time: the
    first frame lasts DEFAULT_DELAY centiseconds, the following ones last
    the time elapsed since the previous frame divided by 'speed'.

    :param frames: Sequence of RecordedFrame
    :param columns: Number of columns of the screen
    :param lines: Number of lines of the screen
    :param dark_theme: Use the colors of the dark theme if True, those of
    the light theme otherwise
    :param speed: Speed multiplier
    """
    screen = Screen(columns, lines, colors.get_theme(dark_theme))
    stream = Stream(screen)

    previous_timestamp = None
    for frame in frames:
        if previous_timestamp is None:
            delay = DEFAULT_DELAY
        else:
            delay = frame_delay(previous_timestamp, frame.timestamp, speed)
        stream.feed(frame.content)
        yield TimedFrame(frame.timestamp, delay, screen.snapshot())
        previous_timestamp = frame.timestamp


def get_terminal_size(fileno):
    try:
        columns, lines = os.get_terminal_size(fileno)
    except OSError:
        columns, lines = 80, 24

    return columns, lines
