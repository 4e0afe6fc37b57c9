import argparse
import asyncio
import sys

from .actions import ActionExecutor
from .channel import CommandDispatcher
from .config import Config
from .engine import Engine
from .errors import WidgetError
from .log import setup_logging
from .metadata import MetadataFetcher
from .output import OutputFile, OutputSink

LIST = 'list'


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f'{self.prog}: error: {message}\n')


def build_parser():
    parser = ArgumentParser(
        prog='mpris-widget',
        description='Report the active media player for a status bar and '
        'forward transport commands to it.')
    parser.add_argument(
        'action',
        nargs='?',
        default='',
        help='play-pause, next, previous, select, list, or any other '
        'playerctl command; omit to run the widget')
    parser.add_argument('player',
                        nargs='?',
                        default='',
                        help='name of the player to act on')
    parser.add_argument('--no-server',
                        action='store_true',
                        help='never use the control socket')
    parser.add_argument(
        '--from-output-file',
        action='store_true',
        help='act on the player saved in the output file when no player '
        'is given')
    parser.add_argument('--debug',
                        action='store_true',
                        help='log debug messages to stderr')
    return parser


async def list_players(config, sink):
    returncode, records = await MetadataFetcher(config).list()
    sink.emit_list(records)
    return 0 if returncode == 0 else 1


async def run_action(config, args, output_file):
    player = args.player
    if not player and args.from_output_file:
        player = output_file.read()

    dispatcher = CommandDispatcher(config,
                                   ActionExecutor(config),
                                   output_file,
                                   use_server=not args.no_server)
    await dispatcher.dispatch(args.action, player)
    return 0


async def run_widget(config, args, sink, output_file):
    engine = Engine(config,
                    MetadataFetcher(config),
                    ActionExecutor(config),
                    sink,
                    output_file,
                    listener=not args.no_server)
    return await engine.run()


async def main_async(config, args):
    sink = OutputSink()
    output_file = OutputFile(config.output_file)

    if args.action == LIST:
        return await list_players(config, sink)
    if args.action:
        return await run_action(config, args, output_file)
    return await run_widget(config, args, sink, output_file)


def main(argv=None, environ=None):
    args = build_parser().parse_args(argv)
    config = Config.from_env() if environ is None else Config.from_env(environ)
    if args.debug:
        config.debug = True
    setup_logging(config.debug)

    try:
        return asyncio.run(main_async(config, args))
    except WidgetError as e:
        print(f'mpris-widget: {e}', file=sys.stderr)
        return 1


def run():
    sys.exit(main())
