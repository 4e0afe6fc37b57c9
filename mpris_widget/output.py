import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class OutputSink:
    """Writes one line per display change for a line-oriented bar."""
    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def _write(self, line):
        self.stream.write(line + '\n')
        self.stream.flush()

    def emit(self, text, player=''):
        if not text:
            self.emit_blank()
            return

        self._write(
            json.dumps({
                'text': text,
                'class': f'custom-{player}',
                'alt': player,
                'tooltip': f'{player}: {text}',
            }, ensure_ascii=False))

    def emit_blank(self):
        self._write('')

    def emit_list(self, records):
        self._write(
            json.dumps([record.to_json() for record in records],
                       ensure_ascii=False))


class OutputFile:
    """The selected player's name, kept in a plain file for other programs."""
    def __init__(self, path):
        self.path = Path(path)

    def write(self, name):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(name)
        logger.debug('wrote player %r to %s', name, self.path)

    def read(self):
        try:
            content = self.path.read_text()
        except FileNotFoundError:
            return ''
        lines = content.splitlines()
        return lines[0] if lines else ''

    def clear(self):
        if self.path.exists():
            self.write('')
