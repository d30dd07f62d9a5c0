# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import dataclasses
import logging
from pathlib import Path

import toml

from compdb_refresh.errors import ConfigError
from compdb_refresh.targets import DEFAULT_TARGETS
from compdb_refresh.targets import TargetMap
from compdb_refresh.targets import normalize


SWITCHES = (
    # Don't emit entries for the headers each source includes.
    'skip_header_extraction',
    # Replace references to bazel-out/ with an absolute path.
    'replace_output_path',
    # Replace references to external/ with an absolute path.
    'replace_external_path',
)

# Table name used when the options live in a shared TOML file.
CONFIG_TABLE = 'refresh_compile_commands'


@dataclasses.dataclass(frozen=True)
class GenerationConfig:
    targets: TargetMap = DEFAULT_TARGETS
    skip_header_extraction: bool = False
    replace_output_path: bool = False
    replace_external_path: bool = False

    def __post_init__(self):
        if not isinstance(self.targets, TargetMap):
            raise ConfigError(
                f'GenerationConfig.targets must be a TargetMap; got {type(self.targets).__name__}, '
                'use GenerationConfig.create() to normalize raw targets'
            )
        for switch in SWITCHES:
            value = getattr(self, switch)
            if not isinstance(value, bool):
                raise ConfigError(
                    f'{switch} must be a boolean; got {type(value).__name__} {value!r}'
                )

    @classmethod
    def create(cls, targets=None, **switches):
        """Normalizes `targets` and builds a config from it and the switches"""
        unknown = sorted(set(switches) - set(SWITCHES))
        if unknown:
            raise ConfigError(f'Unknown option(s): {", ".join(unknown)}')
        return cls(targets=normalize(targets), **switches)

    def switches(self):
        return {switch: getattr(self, switch) for switch in SWITCHES}


def parse_config(obj) -> GenerationConfig:
    """Builds a GenerationConfig from a parsed TOML document"""
    if CONFIG_TABLE in obj:
        obj = obj[CONFIG_TABLE]
    if not isinstance(obj, dict):
        raise ConfigError(f'[{CONFIG_TABLE}] must be a table; got {type(obj).__name__}')
    options = dict(obj)
    return GenerationConfig.create(options.pop('targets', None), **options)


def load_config(path) -> GenerationConfig:
    path = Path(path)
    logging.debug(f'Loading config from {path}')
    try:
        obj = toml.load(path)
    except FileNotFoundError as e:
        raise ConfigError(f'Config file not found: {path}') from e
    except toml.TomlDecodeError as e:
        raise ConfigError(f'Invalid TOML in {path}: {e}') from e
    return parse_config(obj)
