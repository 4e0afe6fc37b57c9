import asyncio
import logging
import signal
from dataclasses import dataclass
from enum import Enum

from .channel import ControlListener
from .errors import (ActionError, ChannelBindError, ChannelUnavailable,
                     MetadataError)

logger = logging.getLogger(__name__)

SIGNALS = (signal.SIGINT, signal.SIGTERM)


class EngineState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    DRAINING = 'draining'
    STOPPED = 'stopped'


@dataclass
class DisplayState:
    """The last text and player name actually emitted."""
    current_text: str = ''
    current_player_name: str = ''

    def update(self, text, player):
        """Store a fetched value, returning (changed, player_changed)."""
        player_changed = player != self.current_player_name
        changed = player_changed or text != self.current_text
        self.current_text = text
        self.current_player_name = player
        return changed, player_changed


class Engine:
    """Polls player metadata and serves queued control commands.

    Only the engine task touches the display state. The listener task
    hands commands over through `commands`, and signal handlers only post
    onto `signals`; all cleanup happens on the engine task while draining.
    """
    def __init__(self, config, fetcher, executor, sink, output_file,
                 listener=True):
        self.config = config
        self.fetcher = fetcher
        self.executor = executor
        self.sink = sink
        self.output_file = output_file

        self.display = DisplayState()
        self.state = EngineState.IDLE
        self.status = 0
        self.error = None

        self.commands = asyncio.Queue()
        self.signals = asyncio.Queue()
        self.listener = None
        self.listener_task = None
        if listener:
            self.listener = ControlListener(config.socket_path,
                                            self.commands,
                                            config.read_timeout)

    def fail(self, error=None):
        self.status = 1
        self.error = error
        self.state = EngineState.DRAINING

    async def refresh(self):
        try:
            returncode, record, text = await self.fetcher.fetch(
                self.display.current_player_name)
        except MetadataError as e:
            logger.error('%s', e)
            self.fail(e)
            return

        if returncode != 0:
            logger.error('metadata command exited with code %s', returncode)
            self.fail()
            return

        player = record.name if record is not None else ''
        changed, player_changed = self.display.update(text, player)
        if not changed:
            return

        self.sink.emit(text, player)
        if player_changed:
            self.output_file.write(player)

    async def handle_command(self, command):
        if command.is_select():
            if not command.player:
                logger.warning('ignoring select without a player name')
                return
            if command.player != self.display.current_player_name:
                self.display.current_player_name = command.player
                # re-emit on the next refresh even if the text is the same
                self.display.current_text = ''
            self.output_file.write(command.player)
            return

        player = command.player or self.display.current_player_name
        try:
            await self.executor.execute(command.action, player)
        except ActionError as e:
            logger.warning('%s failed: %s', command.action, e)
            return

        await self.refresh()

    def handle_signal(self, signum=None):
        logger.debug('received signal %s', signum)
        self.sink.emit_blank()
        self.output_file.clear()
        self.state = EngineState.DRAINING

    def start_listener(self):
        if self.listener is None:
            return
        try:
            self.listener.bind()
        except ChannelBindError as e:
            logger.warning('%s, running without a control socket', e)
            return
        self.listener_task = asyncio.create_task(self.listener.serve())

    def install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for signum in SIGNALS:
            loop.add_signal_handler(signum, self.signals.put_nowait, signum)

    def remove_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for signum in SIGNALS:
            loop.remove_signal_handler(signum)

    async def _tick(self, deadline):
        loop = asyncio.get_running_loop()
        await asyncio.sleep(max(0, deadline - loop.time()))

    async def run_loop(self):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.refresh_interval

        tick = asyncio.create_task(self._tick(deadline))
        command = asyncio.create_task(self.commands.get())
        interrupt = asyncio.create_task(self.signals.get())

        try:
            while self.state is EngineState.RUNNING:
                done, __ = await asyncio.wait(
                    (tick, command, interrupt),
                    return_when=asyncio.FIRST_COMPLETED)

                if interrupt in done:
                    self.handle_signal(interrupt.result())
                    break

                if command in done:
                    await self.handle_command(command.result())
                    while (self.state is EngineState.RUNNING
                           and not self.commands.empty()):
                        await self.handle_command(self.commands.get_nowait())
                    command = asyncio.create_task(self.commands.get())

                if tick in done and self.state is EngineState.RUNNING:
                    await self.refresh()
                    deadline = max(deadline + self.config.refresh_interval,
                                   loop.time())
                    tick = asyncio.create_task(self._tick(deadline))
        finally:
            for task in (tick, command, interrupt):
                task.cancel()

    async def drain(self):
        self.state = EngineState.DRAINING
        if self.listener_task is not None:
            if not self.listener_task.done():
                try:
                    await self.listener.stop()
                except ChannelUnavailable as e:
                    logger.warning('%s', e)
                    self.listener_task.cancel()
            try:
                await self.listener_task
            except asyncio.CancelledError:
                pass
        self.state = EngineState.STOPPED

    async def run(self):
        self.start_listener()
        self.install_signal_handlers()
        self.state = EngineState.RUNNING
        try:
            await self.run_loop()
        finally:
            self.remove_signal_handlers()
            await self.drain()
        return self.status
