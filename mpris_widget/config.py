import os
from dataclasses import dataclass, field, replace
from pathlib import Path

METADATA_FORMAT = ('{{status}};{{artist}};{{title}};{{mpris:artUrl}};'
                   '{{album}};;{{playerName}}')

DEFAULT_METADATA_COMMAND = (
    f"playerctl --all-players metadata --format '{METADATA_FORMAT}' "
    '2>/dev/null || true')
DEFAULT_PLAYERCTL = 'playerctl'
DEFAULT_SOCKET_PATH = '/tmp/mpris_widget.sock'


def default_output_file(environ=os.environ):
    data_home = environ.get('XDG_DATA_HOME')
    if data_home:
        base = Path(data_home)
    else:
        base = Path(environ.get('HOME') or Path.home()) / '.local' / 'share'
    return base / 'mpris-widget' / 'player'


@dataclass
class Config:
    metadata_command: str = DEFAULT_METADATA_COMMAND
    playerctl_path: str = DEFAULT_PLAYERCTL
    socket_path: Path = Path(DEFAULT_SOCKET_PATH)
    output_file: Path = field(default_factory=default_output_file)
    refresh_interval: float = 1.0
    read_timeout: float = 1.0
    debug: bool = False

    @classmethod
    def from_env(cls, environ=os.environ, **overrides):
        config = cls(
            metadata_command=environ.get('PLAYERS_METADATA_PATH',
                                         DEFAULT_METADATA_COMMAND),
            playerctl_path=environ.get('PLAYERCTL_PATH', DEFAULT_PLAYERCTL),
            socket_path=Path(
                environ.get('MPRIS_WIDGET_SOCKET', DEFAULT_SOCKET_PATH)),
            output_file=Path(
                environ.get('MPRIS_WIDGET_OUTPUT_FILE')
                or default_output_file(environ)),
            debug=environ.get('MPRIS_WIDGET_DEBUG') == '1')
        return replace(config, **overrides)
