'''
# Event stream

The parser service reports its work as a stream of text lines
(server-sent events): a line "event: <name>" sets the name of the event,
a line "data: <payload>" carries one frame of that event

    event: progress
    data: {"progress":42}

    event: save-data
    data: {"UnlockData": {"_": [...], "v": [...]}}

The bytes arrive in chunks of any size, not aligned to the lines.
'''
import json
import logging
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import AsyncIterable, Callable, Dict, FrozenSet, List, Optional

from .compact import decode_fields
from .exceptions import SchemaMismatch, StreamDecodeError


logger = logging.getLogger(__name__)

EVENT_PREFIX = b'event:'
DATA_PREFIX = b'data:'
DEFAULT_EVENT = 'message'


@dataclass(frozen=True)
class StreamFrame:
    event: str
    raw: bytes

    @property
    def data(self) -> str:
        '''The payload as text, raises UnicodeDecodeError (a ValueError) if
        it's not valid UTF-8.'''
        return self.raw.decode('utf-8')


class ReaderState(Enum):
    AWAITING_EVENT_LINE = auto()
    AWAITING_DATA_LINE  = auto()
    DISPATCHED          = auto()


def _strip_prefix(line: bytes, prefix: bytes) -> bytes:
    value = line[len(prefix):]
    return value[1:] if value.startswith(b' ') else value


class EventStreamReader(object):
    '''Incremental parser of an event stream.

    Handlers are registered per event name with on(); for each complete
    "data:" line the handler of the current event is called with the
    StreamFrame. Calling cancel() (from a handler or from outside) stops
    the reading: no more lines are dispatched and no more chunks are
    requested from the source.
    '''

    def __init__(self, source: Optional[AsyncIterable[bytes]] = None, default_event: str = DEFAULT_EVENT):
        self.source = source
        self.default_event = default_event
        self.event = default_event
        self.state = ReaderState.AWAITING_EVENT_LINE
        self.cancelled = False
        self._buffer = b''
        self._handlers: Dict[str, Callable[[StreamFrame], None]] = {}

    def on(self, event: str, handler: Callable[[StreamFrame], None]) -> None:
        self._handlers[event] = handler

    def cancel(self) -> None:
        self.cancelled = True

    def feed(self, data: bytes) -> List[StreamFrame]:
        '''Consume some bytes, returns the frames dispatched.'''
        frames = []

        self._buffer += data
        while not self.cancelled:
            idx = self._buffer.find(b'\n')
            if idx < 0:
                break

            line, self._buffer = self._buffer[:idx], self._buffer[idx + 1:]
            frame = self._process_line(line.rstrip(b'\r'))

            if frame is not None:
                frames.append(frame)

        return frames

    def _process_line(self, line: bytes) -> Optional[StreamFrame]:
        if line.startswith(EVENT_PREFIX):
            # a mangled name matches no handler
            name = _strip_prefix(line, EVENT_PREFIX).decode('utf-8', errors='replace').strip()
            self.event = name or self.default_event
            self.state = ReaderState.AWAITING_DATA_LINE
            logger.debug('event: %s', self.event)
            return None

        if not line.startswith(DATA_PREFIX):
            # empty lines, comments and fields we don't use
            return None

        frame = StreamFrame(event=self.event, raw=_strip_prefix(line, DATA_PREFIX))
        self.state = ReaderState.DISPATCHED
        self.dispatch(frame)
        self.state = ReaderState.AWAITING_EVENT_LINE

        return frame

    def dispatch(self, frame: StreamFrame) -> None:
        handler = self._handlers.get(frame.event)
        if handler is None:
            logger.debug('no handler for event \'%s\'', frame.event)
            return

        handler(frame)

    async def run(self) -> None:
        '''Read the source until its end or until cancel() is called.'''
        if self.source is None:
            raise ValueError('no source to read from')

        iterator = self.source.__aiter__()
        try:
            while not self.cancelled:
                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    logger.debug('end of stream')
                    break

                self.feed(chunk)
        finally:
            aclose = getattr(iterator, 'aclose', None)
            if aclose is not None:
                await aclose()


@dataclass(frozen=True)
class StreamConfig:
    """Names of the events sent by the parser service."""

    progress_events: FrozenSet[str] = frozenset({'progress', 'parser'})
    terminal_event: str = 'save-data'
    default_event: str = DEFAULT_EVENT


DEFAULT_STREAM_CONFIG = StreamConfig()


def parse_progress(data: str) -> Optional[int]:
    '''Returns the percentage carried by a progress frame, None if the frame
    doesn't carry one. Raises ValueError if the payload is garbage.'''
    value = json.loads(data)

    if isinstance(value, dict):
        if 'progress' not in value:
            return None
        value = value['progress']

    if value is None:
        value = 0
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f'progress is not a number: {value!r}')

    return min(max(int(round(value)), 0), 100)


class SaveDataSession(object):
    '''Reads the stream of the parser service: reports the progress and
    returns the decoded save data as soon as it arrives.'''

    def __init__(self, source: AsyncIterable[bytes], on_progress: Optional[Callable[[int], None]] = None,
                 config: StreamConfig = DEFAULT_STREAM_CONFIG):
        self.config = config
        self.on_progress = on_progress
        self.progress = 0
        self.result = None
        self.reader = EventStreamReader(source, default_event=config.default_event)

        for event in config.progress_events:
            self.reader.on(event, self._handle_progress)
        self.reader.on(config.terminal_event, self._handle_save_data)

    def _handle_progress(self, frame: StreamFrame) -> None:
        try:
            progress = parse_progress(frame.data)
        except (ValueError, RecursionError) as e:
            logger.warning(f'failed to parse {frame.event} event: {e}')
            return

        if progress is None:
            return

        logger.debug('progress: %d%%', progress)
        self.progress = progress
        if self.on_progress is not None:
            self.on_progress(progress)

    def _handle_save_data(self, frame: StreamFrame) -> None:
        try:
            data = json.loads(frame.data)
        except (ValueError, RecursionError) as e:
            raise StreamDecodeError(f'invalid payload in {frame.event} event: {e}') from e

        if not isinstance(data, dict):
            raise StreamDecodeError(f'{frame.event} event must carry an object, not {data.__class__.__name__}')

        try:
            self.result = decode_fields(data)
        except SchemaMismatch as e:
            raise StreamDecodeError(f'invalid compact table in {frame.event} event: {e}') from e

        logger.info('save data received with fields %s', ', '.join(self.result))
        self.reader.cancel()

    def cancel(self) -> None:
        self.reader.cancel()

    async def read(self) -> dict:
        await self.reader.run()

        if self.result is None:
            raise StreamDecodeError('no save data received from the parser')

        return self.result


async def read_save_data(source: AsyncIterable[bytes], on_progress: Optional[Callable[[int], None]] = None,
                         config: StreamConfig = DEFAULT_STREAM_CONFIG) -> dict:
    return await SaveDataSession(source, on_progress=on_progress, config=config).read()
