import asyncio
import logging

from .errors import ActionError

logger = logging.getLogger(__name__)


class ActionExecutor:
    def __init__(self, config):
        self.playerctl = config.playerctl_path

    def command(self, action, player=''):
        args = [self.playerctl, action]
        if player:
            args += ['--player', player]
        return args

    async def execute(self, action, player=''):
        args = self.command(action, player)
        logger.debug('running %s', ' '.join(args))

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE)
        except OSError as e:
            raise ActionError(action, str(e), 127) from e

        __, stderr = await proc.communicate()
        await proc.wait()

        if proc.returncode != 0:
            raise ActionError(action, stderr.decode(errors='replace'),
                              proc.returncode)
