import asyncio
import logging
import os
import socket
from dataclasses import dataclass

from .errors import ChannelBindError, ChannelUnavailable, UsageError

logger = logging.getLogger(__name__)

BUFFER_SIZE = 1024
SELECT = 'select'
STOP = b''
# undecodable, so a live listener drops it instead of stopping
PING = b'\xff'


@dataclass
class ControlCommand:
    action: str
    player: str = ''

    @classmethod
    def parse(cls, text):
        words = text.split()
        action = words[0] if words else ''
        player = words[1] if len(words) > 1 else ''
        return cls(action, player)

    def is_select(self):
        return self.action == SELECT

    def encode(self):
        if self.player:
            return f'{self.action} {self.player}'.encode()
        return self.action.encode()


async def send(socket_path, payload):
    """Write `payload` to the listener at `socket_path` in one connection."""
    try:
        __, writer = await asyncio.open_unix_connection(str(socket_path))
    except OSError as e:
        raise ChannelUnavailable(
            f'cannot connect to {socket_path}: {e}') from e

    try:
        if payload:
            writer.write(payload)
            await writer.drain()
        writer.close()
        await writer.wait_closed()
    except OSError as e:
        raise ChannelUnavailable(f'cannot write to {socket_path}: {e}') from e


class ControlListener:
    """Single-instance command listener bound to a filesystem path.

    Connections are handled one at a time. Each carries a single
    `action [player]` payload which is put on `queue` as a ControlCommand.
    An empty payload stops the listener, which then removes its path.
    """
    def __init__(self, socket_path, queue, read_timeout=1.0):
        self.socket_path = socket_path
        self.queue = queue
        self.read_timeout = read_timeout
        self.sock = None
        self.running = False

    @property
    def bound(self):
        return self.sock is not None

    def _remove_stale(self):
        """Unlink the path if no listener accepts connections on it."""
        probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        probe.settimeout(1.0)
        try:
            probe.connect(str(self.socket_path))
        except ConnectionRefusedError:
            logger.info('removing stale socket %s', self.socket_path)
            os.unlink(self.socket_path)
        except OSError as e:
            logger.debug('cannot probe %s: %s', self.socket_path, e)
        else:
            probe.sendall(PING)
        finally:
            probe.close()

    def bind(self):
        if os.path.exists(self.socket_path):
            try:
                self._remove_stale()
            except OSError as e:
                raise ChannelBindError(
                    f'cannot remove stale {self.socket_path}: {e}') from e

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(self.socket_path))
            os.chmod(self.socket_path, 0o600)
            sock.listen(16)
        except OSError as e:
            sock.close()
            raise ChannelBindError(
                f'cannot bind {self.socket_path}: {e}') from e
        sock.setblocking(False)
        self.sock = sock
        logger.debug('listening on %s', self.socket_path)

    async def _read(self, conn):
        loop = asyncio.get_running_loop()
        data = await asyncio.wait_for(loop.sock_recv(conn, BUFFER_SIZE),
                                      self.read_timeout)
        return data.decode('utf-8')

    async def _handle(self, conn):
        try:
            text = await self._read(conn)
        except (asyncio.TimeoutError, UnicodeDecodeError, OSError) as e:
            logger.warning('dropping unreadable control message: %r', e)
            return None
        finally:
            conn.close()

        return text

    async def serve(self):
        if not self.bound:
            raise ChannelBindError('listener is not bound')

        loop = asyncio.get_running_loop()
        self.running = True
        try:
            while True:
                conn, __ = await loop.sock_accept(self.sock)
                conn.setblocking(False)
                text = await self._handle(conn)
                if text is None:
                    continue
                if not text:
                    logger.debug('received stop message')
                    break
                command = ControlCommand.parse(text)
                if not command.action:
                    logger.warning('dropping empty control message: %r', text)
                    continue
                logger.debug('received %s', command)
                self.queue.put_nowait(command)
        finally:
            self.running = False
            self.close()

    def close(self):
        if self.sock is None:
            return
        self.sock.close()
        self.sock = None
        try:
            os.unlink(self.socket_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning('cannot remove %s: %s', self.socket_path, e)

    async def stop(self):
        await send(self.socket_path, STOP)


class CommandDispatcher:
    """Deliver a one-shot command to the daemon, or run it directly.

    The control socket is tried first. When it cannot be reached the
    command falls back to direct execution; a `select` is then persisted
    to the output file instead.
    """
    def __init__(self, config, executor, output_file, use_server=True):
        self.socket_path = config.socket_path
        self.executor = executor
        self.output_file = output_file
        self.use_server = use_server

    async def dispatch(self, action, player=''):
        command = ControlCommand(action, player)
        if command.is_select() and not command.player:
            raise UsageError(
                "'select' command needs another argument "
                '(name of the player)')

        if self.use_server:
            try:
                await send(self.socket_path, command.encode())
                logger.debug('sent %s to %s', command, self.socket_path)
                return
            except ChannelUnavailable as e:
                logger.debug('%s, executing directly', e)

        await self.execute(command)

    async def execute(self, command):
        if command.is_select():
            self.output_file.write(command.player)
            return
        await self.executor.execute(command.action, command.player)
