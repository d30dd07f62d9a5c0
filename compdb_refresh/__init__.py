# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Generates compile_commands.json for a Bazel workspace.

The targets of interest are normalized into a canonical label -> flags map,
which is baked into a copy of refresh.template.py. Running that script with
`bazel run` semantics (BUILD_WORKSPACE_DIRECTORY set) writes the database.
"""

from compdb_refresh.config import GenerationConfig
from compdb_refresh.config import load_config
from compdb_refresh.errors import ConfigError
from compdb_refresh.errors import RefreshError
from compdb_refresh.errors import TemplateIntegrityError
from compdb_refresh.materialize import write_script
from compdb_refresh.targets import ALL_TARGETS
from compdb_refresh.targets import DEFAULT_TARGETS
from compdb_refresh.targets import TargetMap
from compdb_refresh.targets import normalize
