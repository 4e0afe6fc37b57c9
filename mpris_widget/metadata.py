import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from .errors import MetadataError

logger = logging.getLogger(__name__)

FIELD_COUNT = 7
SEPARATOR = ' - '


class PlayerState(Enum):
    PLAYING = 'Playing'
    PAUSED = 'Paused'
    STOPPED = 'Stopped'

    @classmethod
    def parse(cls, value):
        if value == 'Playing':
            return cls.PLAYING
        if value == 'Paused':
            return cls.PAUSED
        return cls.STOPPED

    @property
    def icon(self):
        return ICONS[self]


# same glyphs as playerctl's emoji(status)
ICONS = {
    PlayerState.PLAYING: '▶️',
    PlayerState.PAUSED: '⏸️',
    PlayerState.STOPPED: '⏹️',
}


@dataclass
class PlayerRecord:
    state: PlayerState
    artist: str
    title: str
    name: str
    album: str = ''
    art_url: str = ''

    def display_text(self):
        if self.artist:
            return f'{self.state.icon} {self.artist}{SEPARATOR}{self.title}'
        return f'{self.state.icon} {self.title}'

    def to_json(self):
        return {
            'text': self.display_text(),
            'class': f'custom-{self.name}',
            'alt': self.name,
            'artist': self.artist,
            'title': self.title,
            'album': self.album,
            'artUrl': self.art_url,
        }


def parse_line(line):
    """Parse one `state;artist;title;artUrl;album;_;name` line."""
    fields = [f.strip() for f in line.split(';')]
    if len(fields) < FIELD_COUNT:
        raise MetadataError(
            f'expected {FIELD_COUNT} fields in metadata line, '
            f'got {len(fields)}: {line!r}')

    return PlayerRecord(state=PlayerState.parse(fields[0]),
                        artist=fields[1],
                        title=fields[2],
                        art_url=fields[3],
                        album=fields[4],
                        name=fields[6])


def parse_records(output):
    records = []
    for line in output.split('\n'):
        if not line:
            break
        records.append(parse_line(line))
    return records


def select_record(records, selected=''):
    """Return the record named `selected`, else the first one (or None)."""
    chosen = None
    for record in records:
        if selected and record.name == selected:
            return record
        if chosen is None:
            chosen = record
    return chosen


class MetadataFetcher:
    def __init__(self, config):
        self.command = config.metadata_command

    async def list(self):
        proc = await asyncio.create_subprocess_shell(
            self.command,
            stdout=asyncio.subprocess.PIPE)
        stdout, __ = await proc.communicate()
        await proc.wait()

        output = stdout.decode(errors='replace')
        logger.debug('metadata command exited %d with %d bytes',
                     proc.returncode, len(stdout))
        return proc.returncode, parse_records(output)

    async def fetch(self, selected=''):
        returncode, records = await self.list()
        record = select_record(records, selected)
        if record is None:
            return returncode, None, ''
        return returncode, record, record.display_text()
