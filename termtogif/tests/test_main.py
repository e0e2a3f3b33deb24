import os
import shutil
import tempfile
import time
import unittest

from PIL import Image

import termtogif.main
from termtogif.recording import RecordedFrame, read_frames, write_frames

SHELL_INPUT = [
    'echo $SHELL && sleep 0.1;\r\n',
    'date && sleep 0.1;\r\n',
    'uname && sleep 0.1;\r\n',
    'w',
    'h',
    'o',
    'a',
    'm',
    'i\r\n',
    'printf "\\033[1;31mbright red fg\\033[0m\\n"\r\n',
    'printf "\\033[1;41mbright red bg\\033[0m\\n"\r\n',
    'printf "\\033[1mbold\\033[0m\\n"\r\n',
    'printf "\\033[4munderscore\\033[0m\\n"\r\n',
    'printf "\\033[38;5;208m256 colors\\033[0m\\n"\r\n',
    'exit;\r\n'
]

FRAMES = [
    RecordedFrame('\x1b[1;34m$ \x1b[0m', 0),
    RecordedFrame('ls\r\n', 600),
    RecordedFrame('file.txt\r\n', 900),
]


class TestMain(unittest.TestCase):
    test_cases = [
        [],
        ['-c', 'sh'],
        ['--screen-geometry', '82x19'],
        ['-g', '82x19'],
        ['-f', '8'],
        ['--font-size', '24'],
        ['-s', '2'],
        ['--speed', '0.5'],
        ['--dark-theme'],
        ['--no-intro'],
        ['--still-frames'],
        ['-v'],
        ['output_path', '-g', '82x19', '-c', 'date', '--still-frames'],
        ['--screen-geometry', '82x19', '--dark-theme', 'output_path'],
        ['record'],
        ['record', '-c', 'ls'],
        ['record', 'output_path'],
        ['record', 'output_path', '--screen-geometry', '82x19'],
        ['record', '--screen-geometry', '82x19', '-v'],
        ['play', 'input_filename'],
        ['play', 'input_filename', '-s', '4'],
        ['render', 'input_filename'],
        ['render', 'input_filename', 'output_path'],
        ['render', 'input_filename', 'output_path', '-f', '8', '--dark-theme'],
        ['render', 'input_filename', '--no-intro', '--still-frames', '-s', '3'],
    ]

    def test_parse(self):
        for args in self.test_cases:
            with self.subTest(case=args):
                termtogif.main.parse(
                    args=args,
                    default_geometry=(48, 95),
                    default_font_size=8,
                    default_speed=1.0,
                    default_cmd='sh',
                    default_recording='demo.json',
                    default_output='output.gif'
                )

    def test_parse_values(self):
        command, args = termtogif.main.parse(
            ['render', 'in.json', '-g', '82x19', '-f', '12', '-s', '2',
             '--dark-theme', '--no-intro'],
            (48, 95), 8, 1.0, 'sh', 'demo.json', 'output.gif')
        self.assertEqual(command, 'render')
        self.assertEqual(args.input_file, 'in.json')
        self.assertEqual(args.output_path, 'output.gif')
        self.assertEqual(args.screen_geometry, (82, 19))
        self.assertEqual(args.font_size, 12)
        self.assertEqual(args.speed, 2.0)
        self.assertTrue(args.dark_theme)
        self.assertTrue(args.no_intro)
        self.assertFalse(args.still_frames)

        command, args = termtogif.main.parse(
            ['record'], (48, 95), 8, 1.0, 'sh', 'demo.json', 'output.gif')
        self.assertEqual(command, 'record')
        self.assertEqual(args.output_path, 'demo.json')
        self.assertEqual(args.command, 'sh')
        self.assertEqual(args.screen_geometry, (48, 95))

        command, args = termtogif.main.parse(
            [], (48, 95), 8, 1.0, 'sh', 'demo.json', 'output.gif')
        self.assertIsNone(command)
        self.assertIsNone(args.output_path)
        self.assertEqual(args.font_size, 8)
        self.assertEqual(args.speed, 1.0)

    def test_parse_invalid(self):
        invalid_cases = [
            ['-g', '82'],
            ['-f', '0'],
            ['-s', '0'],
            ['-s', 'fast'],
            ['render'],
            ['play'],
            ['render', 'input_filename', '-f', 'big'],
        ]
        for args in invalid_cases:
            with self.subTest(case=args):
                with self.assertRaises(SystemExit):
                    termtogif.main.parse(args, (48, 95), 8, 1.0, 'sh', 'demo.json',
                                         'output.gif')

    @staticmethod
    def run_main(args, process_input):
        # Use pipes in lieu of stdin and stdout
        fd_in_read, fd_in_write = os.pipe()
        fd_out_read, fd_out_write = os.pipe()

        pid = os.fork()
        if pid == 0:
            # Child process
            for line in process_input:
                os.write(fd_in_write, line.encode('utf-8'))
                time.sleep(0.060)
            os._exit(0)

        exit_status = termtogif.main.main(args, fd_in_read, fd_out_write)

        os.waitpid(pid, 0)
        for fd in fd_in_read, fd_in_write, fd_out_read, fd_out_write:
            os.close(fd)

        return exit_status

    def setUp(self):
        self.directory = tempfile.mkdtemp(prefix='termtogif_')

    def tearDown(self):
        shutil.rmtree(self.directory)

    def test_main(self):
        recording_filename = os.path.join(self.directory, 'demo.json')
        gif_filename = os.path.join(self.directory, 'demo.gif')

        with self.subTest(case='record (with filename)'):
            args = ['termtogif', 'record', recording_filename]
            self.assertEqual(TestMain.run_main(args, SHELL_INPUT), 0)
            self.assertTrue(read_frames(recording_filename))

        with self.subTest(case='record (with geometry)'):
            args = ['termtogif', 'record', recording_filename, '--screen-geometry', '82x19']
            self.assertEqual(TestMain.run_main(args, SHELL_INPUT), 0)

        with self.subTest(case='render (with output filename)'):
            args = ['termtogif', 'render', recording_filename, gif_filename, '-f', '8']
            self.assertEqual(TestMain.run_main(args, []), 0)
            with Image.open(gif_filename) as image:
                self.assertEqual(image.format, 'GIF')
                self.assertEqual(image.size, (80 * 8, 24 * 16))

        with self.subTest(case='render (with options)'):
            args = ['termtogif', 'render', recording_filename, gif_filename,
                    '-g', '40x10', '-f', '8', '-s', '2', '--dark-theme', '--no-intro']
            self.assertEqual(TestMain.run_main(args, []), 0)
            with Image.open(gif_filename) as image:
                self.assertEqual(image.size, (40 * 8, 10 * 16))

        with self.subTest(case='render (still frames with output directory)'):
            # Non existing directory
            output_path = os.path.join(self.directory, 'frames')
            args = ['termtogif', 'render', recording_filename, output_path,
                    '--still-frames', '--no-intro', '-f', '4']
            self.assertEqual(TestMain.run_main(args, []), 0)
            frame_count = len(read_frames(recording_filename))
            self.assertEqual(len(os.listdir(output_path)), frame_count)

            # Existing directory
            self.assertEqual(TestMain.run_main(args, []), 0)

        with self.subTest(case='record and render on the fly'):
            args = ['termtogif', gif_filename, '--screen-geometry', '40x10', '-f', '4']
            self.assertEqual(TestMain.run_main(args, SHELL_INPUT), 0)
            with Image.open(gif_filename) as image:
                self.assertEqual(image.size, (40 * 4, 10 * 8))

        with self.subTest(case='record and render custom command'):
            args = ['termtogif', gif_filename, '--command', 'echo hello', '-f', '4']
            self.assertEqual(TestMain.run_main(args, []), 0)

    def test_main_play(self):
        recording_filename = os.path.join(self.directory, 'demo.json')
        write_frames(FRAMES, recording_filename)

        fd_in_read, fd_in_write = os.pipe()
        fd_out_read, fd_out_write = os.pipe()
        args = ['termtogif', 'play', recording_filename, '--speed', '100']
        self.assertEqual(termtogif.main.main(args, fd_in_read, fd_out_write), 0)
        os.close(fd_out_write)
        with os.fdopen(fd_out_read, 'rb') as output_file:
            output = output_file.read()
        for fd in fd_in_read, fd_in_write:
            os.close(fd)

        self.assertEqual(output.decode('utf-8'),
                         ''.join(frame.content for frame in FRAMES))

    def test_main_render_autosave(self):
        recording_filename = os.path.join(self.directory, 'demo.json')
        write_frames(FRAMES, recording_filename + '.autosave')
        gif_filename = os.path.join(self.directory, 'demo.gif')

        args = ['termtogif', 'render', recording_filename, gif_filename]
        self.assertEqual(TestMain.run_main(args, []), 0)
        self.assertTrue(os.path.isfile(gif_filename))

    def test_main_errors(self):
        missing_filename = os.path.join(self.directory, 'missing.json')
        invalid_filename = os.path.join(self.directory, 'invalid.json')
        with open(invalid_filename, 'w') as invalid_file:
            invalid_file.write('{"not": "a recording"')
        empty_filename = os.path.join(self.directory, 'empty.json')
        write_frames([], empty_filename)
        gif_filename = os.path.join(self.directory, 'output.gif')

        test_cases = [
            ('missing recording', ['termtogif', 'render', missing_filename, gif_filename]),
            ('invalid recording', ['termtogif', 'render', invalid_filename, gif_filename]),
            ('empty recording', ['termtogif', 'render', empty_filename, gif_filename]),
            ('play missing recording', ['termtogif', 'play', missing_filename]),
        ]
        for case, args in test_cases:
            with self.subTest(case=case):
                self.assertEqual(TestMain.run_main(args, []), 1)
