"""Terminal session recordings

A recording is a list of frames, each made of a chunk of terminal output and
of the time at which it was captured, in milliseconds since the start of the
recording. Recordings are stored as a pretty-printed JSON array:

    [
      {
        "content": "$ ls\\r\\n",
        "timestamp": 1042
      },
      ...
    ]

Files are written to a temporary file first and then renamed, so that an
interrupted write never leaves a truncated recording behind. While a session
is being recorded, an autosave copy (suffix '.json.autosave') is refreshed
periodically and is used in place of the recording if the latter is missing.
"""
import json
import logging
import os
import time
from collections import namedtuple

from termtogif import config

logger = logging.getLogger(__name__)

AUTOSAVE_SUFFIX = '.json.autosave'
TEMPORARY_SUFFIX = '.json.tmp'


class RecordingError(Exception):
    pass


_RecordedFrame = namedtuple('RecordedFrame', ['content', 'timestamp'])


class RecordedFrame(_RecordedFrame):
    """Frame of a recording

    content: Data written to the terminal
    timestamp: Time elapsed since the beginning of the recording in
               milliseconds
    """
    def __new__(cls, content, timestamp):
        self = super(RecordedFrame, cls).__new__(cls, content, timestamp)
        if not isinstance(content, str):
            raise RecordingError('Invalid type for attribute content: {} (expected str)'
                                 .format(type(content)))
        # bool is a subclass of int but is not a valid timestamp
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            raise RecordingError('Invalid type for attribute timestamp: {} (expected int)'
                                 .format(type(timestamp)))
        if timestamp < 0:
            raise RecordingError('Invalid timestamp: {} (expected a positive integer)'
                                 .format(timestamp))
        return self

    def to_json(self):
        return self._asdict()

    @classmethod
    def from_json(cls, json_dict):
        """Raise RecordingError if json_dict is not a valid frame"""
        if not isinstance(json_dict, dict):
            raise RecordingError('Invalid frame: {!r}'.format(json_dict))
        missing_attributes = set(cls._fields) - set(json_dict)
        if missing_attributes:
            raise RecordingError('Missing attributes in frame: {}'
                                 .format(', '.join(sorted(missing_attributes))))
        return cls(json_dict['content'], json_dict['timestamp'])


def dumps_frames(frames):
    return json.dumps([frame.to_json() for frame in frames], indent=2,
                      ensure_ascii=False)


def loads_frames(data):
    try:
        json_frames = json.loads(data)
    except json.JSONDecodeError as exc:
        raise RecordingError('Invalid JSON: {}'.format(exc)) from exc

    if not isinstance(json_frames, list):
        raise RecordingError('Invalid recording: expected a list of frames')

    return [RecordedFrame.from_json(json_frame) for json_frame in json_frames]


def _with_suffix(filename, suffix):
    root, _ = os.path.splitext(filename)
    return root + suffix


def autosave_path(filename):
    """Return the path of the autosave copy of the recording 'filename'"""
    return _with_suffix(filename, AUTOSAVE_SUFFIX)


def write_frames(frames, filename):
    """Save frames to 'filename'

    The data is written to a temporary file which is then renamed to
    'filename'. Missing parent directories are created.
    """
    directory = os.path.dirname(os.path.abspath(filename))
    if not os.path.isdir(directory):
        logger.debug('Creating directory {}'.format(directory))
        os.makedirs(directory, exist_ok=True)

    data = dumps_frames(frames)
    temporary_filename = _with_suffix(filename, TEMPORARY_SUFFIX)
    with open(temporary_filename, 'w', encoding='utf-8') as temporary_file:
        temporary_file.write(data)
    os.replace(temporary_filename, filename)
    logger.debug('Saved {} frames ({} bytes) to {}'
                 .format(len(frames), len(data), filename))


def read_frames(filename):
    """Return the list of frames saved in 'filename'

    Raise RecordingError if the file can't be read or is not a valid
    recording"""
    try:
        with open(filename, 'r', encoding='utf-8') as recording_file:
            data = recording_file.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise RecordingError('Failed to read {}: {}'.format(filename, exc)) from exc

    try:
        return loads_frames(data)
    except RecordingError as exc:
        raise RecordingError('Invalid recording {}: {}'.format(filename, exc)) from exc


def load_recording(filename):
    """Read the recording 'filename', or its autosave copy if 'filename' does
    not exist"""
    if not os.path.exists(filename):
        autosave_filename = autosave_path(filename)
        if not os.path.exists(autosave_filename):
            raise RecordingError('File not found: {}'.format(filename))
        logger.warning('Original file not found, but found autosave: {}'
                       .format(autosave_filename))
        filename = autosave_filename

    frames = read_frames(filename)
    logger.info('Loaded {} frames from {}'.format(len(frames), filename))
    return frames


def save_recording(frames, filename, autosave_interval=config.AUTOSAVE_INTERVAL,
                   clock=time.monotonic):
    """Consume frames and save them to 'filename'

    Until 'frames' is exhausted, the frames received so far are written to
    the autosave copy of the recording every 'autosave_interval' seconds.

    :param frames: Iterable of RecordedFrame
    :param filename: Path of the recording
    :param autosave_interval: Time between two autosaves in seconds (None
    disables autosaving)
    :param clock: Function returning the current time in seconds
    :return: List of the frames saved
    """
    saved_frames = []
    last_save = clock()
    for frame in frames:
        if frame.content:
            saved_frames.append(frame)

        if autosave_interval is not None and saved_frames:
            now = clock()
            if now - last_save >= autosave_interval:
                write_frames(saved_frames, autosave_path(filename))
                last_save = now

    write_frames(saved_frames, filename)
    return saved_frames
