# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Injects the targets of interest into refresh.template.py.

Each marker below is a line (or line fragment) of the template that is valid
Python on its own, so the template stays runnable before substitution.
"""

import logging
import os
import re
from pathlib import Path
import stat
from typing import Dict, Optional

from compdb_refresh.config import GenerationConfig
from compdb_refresh.errors import ConfigError
from compdb_refresh.errors import TemplateIntegrityError


TEMPLATE = Path(__file__).resolve().with_name('refresh.template.py')

TARGETS_MARKER = '        # {get_commands}'


def switch_marker(switch):
    return f'False  # {{{switch}}}'


def render_targets(target_map) -> str:
    return '\n'.join(f'        ({label!r}, {flags!r}),' for label, flags in target_map.items())


def substitutions(config: GenerationConfig) -> Dict[str, str]:
    if not isinstance(config, GenerationConfig):
        raise ConfigError(f'Expected a GenerationConfig; got {type(config).__name__}')
    subs = {TARGETS_MARKER: render_targets(config.targets)}
    for switch, value in config.switches().items():
        subs[switch_marker(switch)] = repr(value)
    return subs


def expand_template(template: str, subs: Dict[str, str]) -> str:
    """Replaces every marker in `subs` with its value in a single pass.

    Substituted values are never scanned for markers again.

    Raises:
        TemplateIntegrityError: a marker does not occur in `template`.
    """
    missing = [marker for marker in subs if marker not in template]
    if missing:
        raise TemplateIntegrityError(
            'Template is missing marker(s): ' + ', '.join(repr(marker) for marker in missing)
        )
    pattern = re.compile('|'.join(re.escape(marker) for marker in subs))
    return pattern.sub(lambda m: subs[m.group(0)], template)


def materialize(config: GenerationConfig, template: str) -> str:
    return expand_template(template, substitutions(config))


def load_template(path=None) -> str:
    return Path(path or TEMPLATE).read_text(encoding='utf-8')


def write_script(config: GenerationConfig, output, template: Optional[str] = None) -> Path:
    """Materializes the refresh script into `output` and makes it executable"""
    if template is None:
        template = load_template()
    # Nothing is written if rendering fails.
    script = materialize(config, template)

    output = Path(output)
    logging.info(f'Writing {output}')
    output.write_text(script, encoding='utf-8')
    mode = os.stat(output).st_mode
    os.chmod(output, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return output
