# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Normalizes the targets of interest into a label -> extra flags map.

Callers may name one target, a list of targets, or a dict of targets and the
extra `bazel aquery` flags to use for each:

    normalize('//:my_output_binary_target')
    normalize(['//:my_output_1', '//:my_output_2'])
    normalize({'//:my_output_1': '--important_flag1', '//:my_output_2': ''})

Wildcard target patterns (..., *, :all) are allowed and passed to Bazel as-is.
"""

from __future__ import annotations

import collections.abc
import dataclasses
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

from compdb_refresh.errors import ConfigError


# Every target in the main workspace. Bazel expands the pattern at run time.
ALL_TARGETS = '@//...'


class TargetMap(collections.abc.Mapping):
    """Immutable, ordered map of target label to extra flags"""

    __slots__ = ('_items',)

    def __init__(self, items: Iterable[Tuple[str, str]] = ()):
        # dict keeps the first position of a key and the last value assigned.
        self._items = tuple(dict(items).items())

    def __getitem__(self, label):
        for key, flags in self._items:
            if key == label:
                return flags
        raise KeyError(label)

    def __iter__(self) -> Iterator[str]:
        return (label for label, _ in self._items)

    def __len__(self):
        return len(self._items)

    def __hash__(self):
        return hash(frozenset(self._items))

    def __repr__(self):
        return f'TargetMap({dict(self._items)!r})'

    def pairs(self) -> Tuple[Tuple[str, str], ...]:
        return self._items


DEFAULT_TARGETS = TargetMap([(ALL_TARGETS, '')])


@dataclasses.dataclass(frozen=True)
class SingleTarget:
    label: str

    def to_map(self) -> TargetMap:
        return TargetMap([(self.label, '')])


@dataclasses.dataclass(frozen=True)
class TargetList:
    labels: Tuple[str, ...]

    def to_map(self) -> TargetMap:
        # Repeated labels collapse into one entry.
        return TargetMap((label, '') for label in self.labels)


@dataclasses.dataclass(frozen=True)
class TargetFlags:
    flags: Tuple[Tuple[str, str], ...]

    def to_map(self) -> TargetMap:
        return TargetMap(self.flags)


TargetSpec = Union[SingleTarget, TargetList, TargetFlags]


def _check_label(label, where):
    if not isinstance(label, str):
        raise ConfigError(
            f'Target labels must be strings; got {type(label).__name__} {label!r} {where}'
        )
    return label


def parse_spec(value) -> Optional[TargetSpec]:
    """Classifies a raw `targets` value into one of the TargetSpec variants.

    Returns None when no targets are given. Empty strings and collections count
    as not given.

    Raises:
        ConfigError: value is not a string, a list of strings or a dict of
            strings to strings.
    """
    if isinstance(value, (SingleTarget, TargetList, TargetFlags)):
        return value
    if value is None:
        return None
    if isinstance(value, TargetMap):
        return TargetFlags(value.pairs()) if value else None
    if isinstance(value, str):
        return SingleTarget(value) if value else None
    if isinstance(value, collections.abc.Mapping):
        if not value:
            return None
        for label, flags in value.items():
            _check_label(label, 'in targets dict')
            if not isinstance(flags, str):
                raise ConfigError(
                    f'Flags for {label!r} must be a string; got {type(flags).__name__} {flags!r}'
                )
        return TargetFlags(tuple(value.items()))
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        return TargetList(tuple(_check_label(label, 'in targets list') for label in value))
    raise ConfigError(
        'targets must be a label, a list of labels or a dict of labels to flags; '
        f'got {type(value).__name__} {value!r}'
    )


def normalize(
    spec: Union[TargetSpec, str, list, tuple, Mapping[str, str], None] = None
) -> TargetMap:
    """Returns the canonical label -> flags map for `spec`.

    No targets means every target in the main workspace (DEFAULT_TARGETS).
    """
    spec = parse_spec(spec)
    if spec is None:
        return DEFAULT_TARGETS
    return spec.to_map()
