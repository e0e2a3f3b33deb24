"""Command line interface of termtogif"""

import argparse
import logging
import os
import shlex
import sys
import tempfile

import termtogif.config
from termtogif.anim import AnimationError
from termtogif.recording import RecordingError

logger = logging.getLogger('termtogif')

USAGE = """termtogif [output_path] [-c COMMAND] [-g GEOMETRY] [-f FONT_SIZE]
                 [-s SPEED] [--dark-theme] [--no-intro] [--still-frames] [-v] [-h]

Record a terminal session and render it as an animated GIF
"""
EPILOG = ("See also 'termtogif record --help', 'termtogif play --help' and "
          "'termtogif render --help'")
RECORD_USAGE = "termtogif record [output_path] [-c COMMAND] [-g GEOMETRY] [-v] [-h]"
PLAY_USAGE = "termtogif play input_file [-s SPEED] [-v] [-h]"
RENDER_USAGE = """termtogif render input_file [output_path] [-g GEOMETRY]
                 [-f FONT_SIZE] [-s SPEED] [--dark-theme] [--no-intro]
                 [--still-frames] [-v] [-h]"""


def parse(args, default_geometry, default_font_size, default_speed, default_cmd,
          default_recording, default_output):
    """Parse command line arguments

    :param args: Arguments to parse
    :param default_geometry: Default geometry of the screen (tuple made of the
    number of columns and the number of lines)
    :param default_font_size: Default width of a character cell in pixels
    :param default_speed: Default speed multiplier
    :param default_cmd: Default program (with argument list) recorded
    :param default_recording: Default filename of recordings
    :param default_output: Default filename of GIF animations
    :return: Tuple made of the subcommand called (None, 'record', 'play' or
    'render') and all parsed arguments
    """
    command_parser = argparse.ArgumentParser(add_help=False)
    command_parser.add_argument(
        '-c', '--command',
        help=(('specify the program to record with optional arguments '
               '(default: {})').format(default_cmd)),
        default=default_cmd,
        metavar='COMMAND',
    )

    geometry_parser = argparse.ArgumentParser(add_help=False)
    geometry_parser.add_argument(
        '-g', '--screen-geometry',
        help='geometry of the terminal screen. The geometry must be given as '
             'the number of columns and the number of rows on the screen '
             'separated by the character "x". For example "82x19" for an 82 '
             'columns by 19 rows screen (default: {}x{}).'
             .format(*default_geometry),
        metavar='GEOMETRY',
        default=default_geometry,
        type=termtogif.config.validate_geometry
    )

    speed_parser = argparse.ArgumentParser(add_help=False)
    speed_parser.add_argument(
        '-s', '--speed',
        type=termtogif.config.validate_speed,
        metavar='SPEED',
        default=default_speed,
        help='playback speed multiplier (default: {})'.format(default_speed)
    )

    rendering_parser = argparse.ArgumentParser(add_help=False)
    rendering_parser.add_argument(
        '-f', '--font-size',
        type=termtogif.config.validate_font_size,
        metavar='FONT_SIZE',
        default=default_font_size,
        help=('width of a character cell in pixels, cells being twice as '
              'tall as wide (default: {})'.format(default_font_size))
    )
    rendering_parser.add_argument(
        '--dark-theme',
        help='render light text on a dark background',
        action='store_true'
    )
    rendering_parser.add_argument(
        '--no-intro',
        help='do not add a title before and a closing message after the '
             'recording',
        action='store_true'
    )
    rendering_parser.add_argument(
        '--still-frames',
        help='output still frames (PNG) instead of an animation',
        action='store_true'
    )

    verbose_parser = argparse.ArgumentParser(add_help=False)
    verbose_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='write detailed log messages to a temporary file'
    )

    parser = argparse.ArgumentParser(
        prog='termtogif',
        parents=[command_parser, geometry_parser, speed_parser,
                 rendering_parser, verbose_parser],
        usage=USAGE,
        epilog=EPILOG
    )
    parser.add_argument(
        'output_path',
        nargs='?',
        help='optional filename of the GIF animation. If --still-frames is '
             'specified, output_path should be the path of the directory where '
             'still frames will be stored. If missing, a random path '
             'will be automatically generated.',
        metavar='output_path'
    )
    if args:
        if args[0] == 'record':
            parser = argparse.ArgumentParser(
                description='record the session to a file',
                parents=[command_parser, geometry_parser, verbose_parser],
                usage=RECORD_USAGE
            )
            parser.add_argument(
                'output_path',
                nargs='?',
                default=default_recording,
                help='filename of the recording (default: {})'
                     .format(default_recording),
                metavar='output_path'
            )
            return args[0], parser.parse_args(args[1:])

        if args[0] == 'play':
            parser = argparse.ArgumentParser(
                description='play back a recording in the terminal',
                parents=[speed_parser, verbose_parser],
                usage=PLAY_USAGE
            )
            parser.add_argument(
                'input_file',
                help='recording of a terminal session'
            )
            return args[0], parser.parse_args(args[1:])

        if args[0] == 'render':
            parser = argparse.ArgumentParser(
                description='render a recording as an animated GIF',
                parents=[geometry_parser, speed_parser, rendering_parser,
                         verbose_parser],
                usage=RENDER_USAGE
            )
            parser.add_argument(
                'input_file',
                help='recording of a terminal session'
            )
            parser.add_argument(
                'output_path',
                nargs='?',
                default=default_output,
                help='filename of the GIF animation (default: {}). If '
                     '--still-frames is specified, output_path should be the '
                     'path of the directory where still frames will be stored.'
                     .format(default_output),
                metavar='output_path'
            )
            return args[0], parser.parse_args(args[1:])

    return None, parser.parse_args(args)


def record_subcommand(process_args, geometry, input_fileno, output_fileno,
                      recording_filename):
    """Save a terminal session as a recording"""
    from termtogif.recording import save_recording
    from termtogif.term import TerminalMode, record

    logger.info('Recording started, enter "exit" command or Control-D to end')
    columns, lines = geometry
    with TerminalMode(input_fileno):
        # Do not write anything to stdout (print, logger...) while in this
        # context manager if the output of the process is set to stdout. We
        # do not want two processes writing to the same terminal.
        records = record(process_args, columns, lines, input_fileno,
                         output_fileno)
        frames = save_recording(records, recording_filename)
    logger.info('Recording ended, {} frames saved to {}'
                .format(len(frames), recording_filename))
    return frames


def play_subcommand(recording_filename, speed, output_fileno):
    """Play back a recording"""
    from termtogif.recording import load_recording
    from termtogif.term import play

    frames = load_recording(recording_filename)
    play(frames, output_fileno, speed)
    logger.info('Playback complete')


def render_subcommand(frames, geometry, font_size, speed, dark_theme, intro,
                      still, output_path):
    """Render the animation from the frames of a recording"""
    import termtogif.anim

    logger.info('Rendering started')
    columns, lines = geometry
    animation = termtogif.anim.render_timeline(frames, columns, lines, font_size,
                                               dark_theme, speed, intro)
    if still:
        termtogif.anim.render_still_frames(animation, output_path)
        logger.info('Rendering ended, {} PNG frames are located at {}'
                    .format(len(animation.frames), output_path))
    else:
        termtogif.anim.render_animation(animation, output_path)
        logger.info('Rendering ended, GIF animation ({}x{}, {} frames) is {}'
                    .format(animation.width, animation.height,
                            len(animation.frames), output_path))


def _output_path(output_path, still):
    """Return the path of the animation or of the directory of still frames,
    creating a temporary one if needed"""
    if output_path is None:
        if still:
            return tempfile.mkdtemp(prefix='termtogif_')
        _, output_path = tempfile.mkstemp(prefix='termtogif_', suffix='.gif')
        return output_path

    if still:
        try:
            os.mkdir(output_path)
        except FileExistsError:
            if not os.path.isdir(output_path):
                raise
    return output_path


def main(args=None, input_fileno=None, output_fileno=None):
    if args is None:
        args = sys.argv
    if input_fileno is None:
        input_fileno = sys.stdin.fileno()
    if output_fileno is None:
        output_fileno = sys.stdout.fileno()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter('%(message)s')
    console_handler.setFormatter(console_formatter)
    logger.handlers = [console_handler]
    logger.setLevel(logging.INFO)

    default_cmd = os.environ.get('SHELL', 'sh')
    command, args = parse(args[1:],
                          termtogif.config.DEFAULT_GEOMETRY,
                          termtogif.config.DEFAULT_FONT_SIZE,
                          termtogif.config.DEFAULT_SPEED,
                          default_cmd,
                          termtogif.config.DEFAULT_RECORDING,
                          termtogif.config.DEFAULT_OUTPUT)

    if args.verbose:
        _, log_filename = tempfile.mkstemp(prefix='termtogif_', suffix='.log')
        file_handler = logging.FileHandler(filename=log_filename, mode='w')
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(file_formatter)
        logger.handlers.append(file_handler)
        logger.setLevel(logging.DEBUG)
        logger.info('Logging to {}'.format(log_filename))

    exit_status = 0
    try:
        if command == 'record':
            process_args = shlex.split(args.command)
            record_subcommand(process_args, args.screen_geometry, input_fileno,
                              output_fileno, args.output_path)
        elif command == 'play':
            play_subcommand(args.input_file, args.speed, output_fileno)
        elif command == 'render':
            from termtogif.recording import load_recording

            frames = load_recording(args.input_file)
            output_path = _output_path(args.output_path, args.still_frames)
            render_subcommand(frames, args.screen_geometry, args.font_size,
                              args.speed, args.dark_theme, not args.no_intro,
                              args.still_frames, output_path)
        else:
            # No command passed: record and render on the fly
            _, recording_filename = tempfile.mkstemp(prefix='termtogif_',
                                                     suffix='.json')
            output_path = _output_path(args.output_path, args.still_frames)
            process_args = shlex.split(args.command)
            frames = record_subcommand(process_args, args.screen_geometry,
                                       input_fileno, output_fileno,
                                       recording_filename)
            render_subcommand(frames, args.screen_geometry, args.font_size,
                              args.speed, args.dark_theme, not args.no_intro,
                              args.still_frames, output_path)
    except (AnimationError, RecordingError) as exc:
        logger.error('Error: {}'.format(exc))
        exit_status = 1

    for handler in logger.handlers:
        handler.close()

    return exit_status
