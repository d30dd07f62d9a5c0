# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.


class RefreshError(Exception):
    """Base class of the errors raised while generating the refresh script"""


class ConfigError(RefreshError):
    """The caller supplied a configuration value of an unsupported shape"""


class TemplateIntegrityError(RefreshError):
    """The script template is missing a marker the materializer substitutes"""
