#!/usr/bin/env python3
# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Refreshes compile_commands.json in the root of a Bazel workspace.

usage examples:
  refresh-compile-commands

    * Extract commands for every target in the workspace (@//...).

  refresh-compile-commands //cras/src/server:cras //cras/src/tests:all

    * Extract commands for the listed targets and their dependencies.

  refresh-compile-commands --target-flags '//:bin=--config=asan' --skip-header-extraction

    * Pass extra flags to `bazel aquery` for //:bin; don't list headers.

  refresh-compile-commands --config refresh.toml --output refresh_compile_commands.py

    * Only write the refresh script configured by refresh.toml.
"""

import argparse
import dataclasses
import logging
import os
from pathlib import Path
import shlex
import subprocess
import sys
import tempfile

from compdb_refresh.config import GenerationConfig
from compdb_refresh.config import SWITCHES
from compdb_refresh.config import load_config
from compdb_refresh.errors import ConfigError
from compdb_refresh.errors import RefreshError
from compdb_refresh.materialize import write_script


def refresh(config: GenerationConfig, workspace=None) -> int:
    """Materializes the refresh script and runs it against `workspace`.

    Returns the exit status of the script.
    """
    env = dict(os.environ)
    if workspace is not None:
        env['BUILD_WORKSPACE_DIRECTORY'] = os.fspath(workspace)
    env.setdefault('BUILD_WORKSPACE_DIRECTORY', os.getcwd())

    with tempfile.TemporaryDirectory(prefix='compdb-refresh-') as tmp:
        script = write_script(config, Path(tmp) / 'refresh_compile_commands.py')
        cmd = [sys.executable, os.fspath(script)]
        logging.info(f'Running {shlex.join(cmd)} in {env["BUILD_WORKSPACE_DIRECTORY"]}')
        status = subprocess.call(cmd, env=env)
    if status != 0:
        logging.error(f'Refresh script exited with status {status}')
    return status


def target_flags(s: str):
    label, sep, flags = s.partition('=')
    if not sep or not label:
        raise argparse.ArgumentTypeError(f'expected LABEL=FLAGS; got {s!r}')
    return label, flags


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Refreshes compile_commands.json in the root of a Bazel workspace.',
        epilog=__doc__.split('\n\n', 1)[1],
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument('targets', nargs='*', help='targets of interest, default: @//...')
    parser.add_argument(
        '--target-flags',
        action='append',
        type=target_flags,
        metavar='LABEL=FLAGS',
        help='target of interest with extra flags for bazel aquery; repeatable',
    )
    for switch in SWITCHES:
        parser.add_argument(
            '--' + switch.replace('_', '-'), action='store_true', default=None, dest=switch
        )
    parser.add_argument('--config', type=Path, help='TOML file with the options above')
    parser.add_argument('--output', type=Path, help='only write the refresh script to this file')
    parser.add_argument(
        '--workspace', type=Path, help='workspace to refresh, default: $BUILD_WORKSPACE_DIRECTORY'
    )
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser.parse_args(argv)


def build_config(args) -> GenerationConfig:
    if args.targets and args.target_flags:
        raise ConfigError('Give either plain targets or --target-flags, not both')

    config = load_config(args.config) if args.config else GenerationConfig()

    overrides = {switch: True for switch in SWITCHES if getattr(args, switch)}
    if args.targets:
        overrides['targets'] = args.targets
    elif args.target_flags:
        overrides['targets'] = dict(args.target_flags)
    if 'targets' in overrides:
        return GenerationConfig.create(**{**config.switches(), **overrides})
    return dataclasses.replace(config, **overrides)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(levelname)8s] %(message)s',
    )

    try:
        config = build_config(args)
        logging.debug(f'Targets: {dict(config.targets)}')
        if args.output:
            write_script(config, args.output)
            return 0
        return refresh(config, args.workspace)
    except RefreshError as e:
        logging.error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
