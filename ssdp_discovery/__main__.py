#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import logging

from ssdp_discovery.internal_types import *

from ssdp_discovery import (
    __version__ as pkg_version,
    SsdpClient,
    DiscoveryConfig,
    SearchTarget,
  )

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

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    def _get_config(self) -> DiscoveryConfig:
        config_file: Optional[str] = self._args.config_file
        config = DiscoveryConfig() if config_file is None else DiscoveryConfig.load_file(config_file)
        overrides: Dict[str, Any] = {}
        if not self._args.port is None:
            overrides['port'] = self._args.port
        if not self._args.broadcast_address is None:
            overrides['broadcast_address'] = self._args.broadcast_address
        if not self._args.timeout_ms is None:
            overrides['timeout_ms'] = self._args.timeout_ms
        if not self._args.max_fetch_workers is None:
            overrides['max_fetch_workers'] = self._args.max_fetch_workers
        if not self._args.fetch_timeout is None:
            overrides['fetch_timeout'] = self._args.fetch_timeout
        return config.with_options(**overrides)

    def cmd_search(self) -> int:
        client = SsdpClient(self._get_config())
        responses = client.search(self._args.search_target)
        for response in responses:
            print(json.dumps(response.as_json_data(), indent=2, sort_keys=True))
        sys.stdout.flush()
        return 0

    def cmd_devices(self) -> int:
        client = SsdpClient(self._get_config())
        devices = client.search_devices(self._args.search_target)
        for device in devices:
            print(json.dumps(device.as_json_data(), indent=2, sort_keys=True))
        sys.stdout.flush()
        return 0

    def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    def run(self) -> int:
        """Run the ssdp-discover command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(prog="ssdp-discover", description="Discover devices with SSDP.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('-c', '--config', dest='config_file', default=None,
                            help='''A JSON configuration file. Command-line options override its values.''')
        parser.add_argument('-p', '--port', dest='port', type=int, default=None,
                            help='''The UDP port to send searches to and receive responses on. Default: 9000''')
        parser.add_argument('-b', '--broadcast', dest='broadcast_address', default=None,
                            help='''The address to send search requests to. Default: 239.235.255.250''')
        parser.add_argument('-t', '--timeout', dest='timeout_ms', type=int, default=None,
                            help='''How long to wait for responses, in milliseconds. Default: 0''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')

        # ======================= search

        parser_search = subparsers.add_parser('search', description="Search for SSDP responders and print their responses")
        parser_search.add_argument('--target', dest='search_target', default=SearchTarget.ALL.token,
                            help=f'''The search target to search for. Default: "{SearchTarget.ALL.token}"''')
        parser_search.set_defaults(func=self.cmd_search, max_fetch_workers=None, fetch_timeout=None)

        # ======================= devices

        parser_devices = subparsers.add_parser('devices', description="Search for SSDP responders and print their device descriptions")
        parser_devices.add_argument('--target', dest='search_target', default=SearchTarget.ALL.token,
                            help=f'''The search target to search for. Default: "{SearchTarget.ALL.token}"''')
        parser_devices.add_argument('--workers', dest='max_fetch_workers', type=int, default=None,
                            help='''The number of device descriptions to fetch concurrently. Default: 1''')
        parser_devices.add_argument('--fetch-timeout', dest='fetch_timeout', type=float, default=None,
                            help='''The timeout for each device description fetch, in seconds. Default: none''')
        parser_devices.set_defaults(func=self.cmd_devices)

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
            func: Callable[[], int] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"ssdp-discover: error: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"ssdp-discover: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

def main() -> None:
    sys.exit(run())

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    main()
