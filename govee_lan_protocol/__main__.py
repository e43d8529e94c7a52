#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import asyncio
import logging
from signal import SIGINT, SIGTERM

from govee_lan_protocol.internal_types import *

from govee_lan_protocol import (
    __version__ as pkg_version,
    GoveeLanClient,
    LanConfig,
    DeviceRecord,
    AccessoryInfo,
    DEFAULT_SCAN_INTERVAL,
  )

DEFAULT_WAIT_TIME = 3.0

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

def _print_json(value: Jsonable) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))
    sys.stdout.flush()

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    def _get_config(self) -> LanConfig:
        config = LanConfig()
        config_file: Optional[str] = self._args.config_file
        if config_file is not None:
            config.load_file(config_file)
        bind_addresses: List[str] = self._args.bind_addresses
        overrides: Dict[str, Any] = dict(
            scan_interval=getattr(self._args, 'scan_interval', None),
            bind_addresses=bind_addresses if len(bind_addresses) > 0 else None,
          )
        if len(bind_addresses) == 1 and bind_addresses[0] == 'auto':
            overrides['bind_addresses'] = 'auto'
        config.update(overrides)
        return config

    async def _wait_for_device(self, client: GoveeLanClient, device_id: str, wait_time: float) -> DeviceRecord:
        device = client.get_device(device_id)
        if device is not None:
            return device
        found: asyncio.Future[DeviceRecord] = asyncio.get_running_loop().create_future()

        def on_discovered(record: DeviceRecord) -> None:
            if record.device_id == device_id and not found.done():
                found.set_result(record)

        i = client.add_device_discovered_handler(on_discovered)
        try:
            return await asyncio.wait_for(found, timeout=wait_time)
        except asyncio.TimeoutError:
            raise CmdExitError(1, f"Device {device_id} did not answer a scan within {wait_time} seconds")
        finally:
            client.remove_device_discovered_handler(i)

    async def cmd_scan(self) -> int:
        wait_time: float = self._args.wait_time
        async with GoveeLanClient(config=self._get_config()) as client:
            await asyncio.sleep(wait_time)
            devices = client.devices
        _print_json([ device.to_jsonable() for device in devices ])
        return 0

    async def cmd_monitor(self) -> int:
        poll_interval: float = self._args.poll_interval
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def on_discovered(record: DeviceRecord) -> None:
            _print_json(dict(event="discovered", device=record.to_jsonable()))

        def on_update(device_id: str, payload: JsonableDict) -> None:
            _print_json(dict(event="status", device=device_id, msg=payload))

        loop = asyncio.get_running_loop()
        if not self._provide_traceback:
            for signal in (SIGINT, SIGTERM):
                loop.add_signal_handler(signal, lambda: done.done() or done.set_result(None))
        try:
            async with GoveeLanClient(config=self._get_config()) as client:
                client.add_device_discovered_handler(on_discovered)
                client.add_device_update_handler(on_update)
                while not done.done():
                    if poll_interval > 0.0:
                        for device in client.devices:
                            await client.send_device_state_request(device)
                    try:
                        await asyncio.wait_for(asyncio.shield(done), timeout=poll_interval if poll_interval > 0.0 else None)
                    except asyncio.TimeoutError:
                        pass
        finally:
            if not self._provide_traceback:
                for signal in (SIGINT, SIGTERM):
                    loop.remove_signal_handler(signal)
        return 0

    async def _send_and_collect(self, device_id: str, params: Optional[JsonableDict]) -> int:
        wait_time: float = self._args.wait_time
        replies: List[JsonableDict] = []
        got_reply = asyncio.Event()

        def on_update(update_device_id: str, payload: JsonableDict) -> None:
            if update_device_id == device_id:
                replies.append(payload)
                got_reply.set()

        async with GoveeLanClient(config=self._get_config()) as client:
            client.add_device_update_handler(on_update)
            await self._wait_for_device(client, device_id, wait_time)
            if params is None:
                ok = await client.request_device_status(device_id)
            else:
                ok = await client.update_device(AccessoryInfo(device_id), params)
            if not ok:
                raise CmdExitError(1, f"Failed to send command to device {device_id}")
            try:
                await asyncio.wait_for(got_reply.wait(), timeout=wait_time)
            except asyncio.TimeoutError:
                raise CmdExitError(1, f"Device {device_id} did not report its status within {wait_time} seconds")
        _print_json(replies[0])
        return 0

    async def cmd_send(self) -> int:
        data: Jsonable = json.loads(self._args.data)
        if not isinstance(data, dict):
            raise CmdExitError(1, f"Command data must be a JSON object: {self._args.data}")
        params: JsonableDict = dict(cmd=self._args.cmd, data=data)
        return await self._send_and_collect(self._args.device_id, params)

    async def cmd_status(self) -> int:
        return await self._send_and_collect(self._args.device_id, None)

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the govee-lan command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(description="Discover and control Govee devices on the local network.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('-c', '--config', dest='config_file', default=None,
                            help='''A JSON configuration file. Default: built-in ports and intervals''')
        parser.add_argument('-b', '--bind', dest="bind_addresses", action='append', default=[],
                            help='''The local IPv4 address on which to join the multicast group. May be repeated. '''
                                 '''"auto" selects all local non-loopback addresses. Default: the default interface.''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')


        # ======================= scan

        parser_scan = subparsers.add_parser('scan', description="Scan for LAN devices and print the devices that answered")
        parser_scan.add_argument('--wait-time', type=float, default=DEFAULT_WAIT_TIME,
                            help=f'''The amount of time to wait for scan replies, in seconds. Default: {DEFAULT_WAIT_TIME}''')
        parser_scan.set_defaults(func=self.cmd_scan)

        # ======================= monitor

        parser_monitor = subparsers.add_parser('monitor', description="Print discovered devices and status replies until interrupted")
        parser_monitor.add_argument('--scan-interval', type=float, default=None,
                            help=f'''The interval between scan requests, in seconds. Default: {DEFAULT_SCAN_INTERVAL}''')
        parser_monitor.add_argument('--poll-interval', type=float, default=0.0,
                            help='''The interval at which to request the status of every known device, in seconds. Default: 0 (never)''')
        parser_monitor.set_defaults(func=self.cmd_monitor)

        # ======================= send

        parser_send = subparsers.add_parser('send', description="Send a control command to a device and print its new status")
        parser_send.add_argument('device_id', help='The device ID, as printed by "scan"')
        parser_send.add_argument('cmd', help='The command; e.g., "turn", "brightness", "colorwc"')
        parser_send.add_argument('data', nargs='?', default='{}',
                            help='''The command data as a JSON object; e.g., '{"value": 1}'. Default: {}''')
        parser_send.add_argument('--wait-time', type=float, default=DEFAULT_WAIT_TIME,
                            help=f'''The amount of time to wait for discovery and for the status reply, in seconds. Default: {DEFAULT_WAIT_TIME}''')
        parser_send.set_defaults(func=self.cmd_send)

        # ======================= status

        parser_status = subparsers.add_parser('status', description="Request and print the status of a device")
        parser_status.add_argument('device_id', help='The device ID, as printed by "scan"')
        parser_status.add_argument('--wait-time', type=float, default=DEFAULT_WAIT_TIME,
                            help=f'''The amount of time to wait for discovery and for the status reply, in seconds. Default: {DEFAULT_WAIT_TIME}''')
        parser_status.set_defaults(func=self.cmd_status)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"govee-lan: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"govee-lan: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
