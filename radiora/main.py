import argparse
import asyncio
import sys

import logfire

from radiora.bootstrap import bootstrap
from radiora.core.config import ControllerSettings, DEFAULT_CONFIG_PATH, load_config
from radiora.devices import build_outputs
from radiora.lutron.commands import SetLevelOptions
from radiora.lutron.session import RadioRASession
from radiora.lutron.types import RadioRAError, StatusEvent
from radiora.registry import SessionRegistry
from radiora.utils.eventbus import ALL_EVENTS

from radiora.utils.logging import get_logger
logger = get_logger(__name__)

READY_TIMEOUT = 15.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="radiora", description="RadioRA controller client")
    parser.add_argument('-c', '--config', default=DEFAULT_CONFIG_PATH, help='Path to the YAML configuration')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    get_parser = subparsers.add_parser('get', help='Query the level of an output')
    get_parser.add_argument('id', type=int)

    set_parser = subparsers.add_parser('set', help='Set the level of an output')
    set_parser.add_argument('id', type=int)
    set_parser.add_argument('level', type=float)
    set_parser.add_argument('--fade', help='Fade time in protocol units')
    set_parser.add_argument('--delay', help='Delay in protocol units (requires --fade)')

    monitor_parser = subparsers.add_parser('monitor', help='Print status pushes as they arrive')
    monitor_parser.add_argument('--duration', type=float, default=None, help='Seconds to monitor (default: forever)')

    subparsers.add_parser('devices', help='List configured outputs')
    return parser


async def run_command(args: argparse.Namespace, settings: ControllerSettings) -> int:
    registry = SessionRegistry()
    session = RadioRASession(settings)
    registry.register(settings.name, session)

    try:
        if args.command == 'devices':
            for output in build_outputs(session):
                print(f"{output.id:>5}  {output.name:<30} {output.serial}")
            return 0

        with logfire.span("RadioRA {command}", command=args.command):
            if not await session.connect():
                return 1
            if not await session.wait_ready(READY_TIMEOUT):
                logger.error("Timed out waiting for the controller login")
                return 1

            if args.command == 'get':
                level = await session.query_level(args.id, use_cache=False)
                if level is None:
                    return 1
                print(f"{args.id}: {level:.2f}")

            elif args.command == 'set':
                event = await session.set_level(args.id, args.level, SetLevelOptions(args.fade, args.delay))
                if event is None:
                    return 1
                print(f"{event.device_id}: {event.value:.2f}")

            elif args.command == 'monitor':
                def show(payload):
                    if isinstance(payload, StatusEvent):
                        print(f"{payload.device_id}: {payload.level}")

                session.subscribe(ALL_EVENTS, show)
                if args.duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(args.duration)
        return 0
    finally:
        await registry.close_all()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    bootstrap('DEV' if args.verbose else 'PROD', service_name="radiora", verbose=args.verbose)
    try:
        settings = ControllerSettings.from_config(load_config(args.config))
        return asyncio.run(run_command(args, settings))
    except KeyboardInterrupt:
        logger.warning("Exiting due to KeyboardInterrupt")
        return 130
    except (RadioRAError, OSError) as e:
        logger.error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
