import pytest
import asyncio
import os
import shutil
import tempfile
from pathlib import Path

from mpris_widget.config import Config

FAKE_PLAYERCTL = '''#!/bin/sh
echo "$@" >> "{log}"
if [ "$1" = "fail" ]; then
    echo "No player could handle this command" >&2
    exit 1
fi
exit 0
'''


@pytest.fixture()
async def bus_address():
    if not shutil.which('dbus-launch'):
        pytest.skip('dbus-launch is not installed')

    proc = await asyncio.create_subprocess_shell(
        'dbus-launch', stdout=asyncio.subprocess.PIPE)
    stdout, __ = await proc.communicate()
    await proc.wait()
    assert proc.returncode == 0
    address = None
    for line in stdout.decode().split():
        if line.startswith('DBUS_SESSION_BUS_ADDRESS='):
            address = line.split('=', 1)[1].strip()
            break

    assert address

    return address


@pytest.fixture()
def runtime_dir():
    # unix socket paths are limited to ~100 bytes, keep this one short
    path = tempfile.mkdtemp(prefix='mw-')
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


class FakePlayerctl:
    def __init__(self, directory):
        self.path = directory / 'playerctl'
        self.log = directory / 'playerctl.log'
        self.path.write_text(FAKE_PLAYERCTL.format(log=self.log))
        self.path.chmod(0o755)

    @property
    def calls(self):
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()


@pytest.fixture()
def fake_playerctl(runtime_dir):
    return FakePlayerctl(runtime_dir)


@pytest.fixture()
def config(runtime_dir, fake_playerctl):
    return Config(metadata_command="printf ''",
                  playerctl_path=str(fake_playerctl.path),
                  socket_path=runtime_dir / 'sock',
                  output_file=runtime_dir / 'data' / 'player',
                  refresh_interval=0.05,
                  read_timeout=0.5)


@pytest.fixture()
def widget_env(config):
    env = os.environ.copy()
    env['PLAYERS_METADATA_PATH'] = config.metadata_command
    env['PLAYERCTL_PATH'] = config.playerctl_path
    env['MPRIS_WIDGET_SOCKET'] = str(config.socket_path)
    env['MPRIS_WIDGET_OUTPUT_FILE'] = str(config.output_file)
    env.pop('MPRIS_WIDGET_DEBUG', None)
    return env
