# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from pathlib import Path
import tempfile
import unittest

from compdb_refresh import config
from compdb_refresh.errors import ConfigError


class GenerationConfigTest(unittest.TestCase):
    def test_defaults(self):
        c = config.GenerationConfig()
        self.assertEqual(c.targets, {'@//...': ''})
        self.assertEqual(
            c.switches(),
            {
                'skip_header_extraction': False,
                'replace_output_path': False,
                'replace_external_path': False,
            },
        )

    def test_create(self):
        c = config.GenerationConfig.create(['//:a', '//:a'], replace_external_path=True)
        self.assertEqual(c.targets, {'//:a': ''})
        self.assertTrue(c.replace_external_path)
        self.assertFalse(c.replace_output_path)

    def test_rejects_non_bool_switch(self):
        with self.assertRaisesRegex(ConfigError, 'skip_header_extraction'):
            config.GenerationConfig.create(skip_header_extraction='yes')
        with self.assertRaises(ConfigError):
            config.GenerationConfig.create(replace_output_path=1)

    def test_rejects_raw_targets(self):
        with self.assertRaisesRegex(ConfigError, 'TargetMap'):
            config.GenerationConfig(targets={'//:a': ''})

    def test_rejects_unknown_option(self):
        with self.assertRaisesRegex(ConfigError, 'replace_bazel_path'):
            config.GenerationConfig.create(replace_bazel_path=True)


class LoadConfigTest(unittest.TestCase):
    def write(self, text):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / 'refresh.toml'
        path.write_text(text, encoding='utf-8')
        return path

    def test_top_level(self):
        path = self.write(
            '''
targets = ["//:a", "//:b"]
skip_header_extraction = true
'''
        )
        c = config.load_config(path)
        self.assertEqual(list(c.targets), ['//:a', '//:b'])
        self.assertTrue(c.skip_header_extraction)

    def test_table(self):
        path = self.write(
            '''
[refresh_compile_commands]
replace_output_path = true

[refresh_compile_commands.targets]
"//:bin" = "--config=asan"
'''
        )
        c = config.load_config(path)
        self.assertEqual(dict(c.targets), {'//:bin': '--config=asan'})
        self.assertTrue(c.replace_output_path)

    def test_empty_file(self):
        self.assertEqual(config.load_config(self.write('')), config.GenerationConfig())

    def test_bad_targets(self):
        with self.assertRaisesRegex(ConfigError, 'int'):
            config.load_config(self.write('targets = 42\n'))

    def test_invalid_toml(self):
        with self.assertRaisesRegex(ConfigError, 'Invalid TOML'):
            config.load_config(self.write('targets = [\n'))

    def test_missing_file(self):
        with self.assertRaisesRegex(ConfigError, 'not found'):
            config.load_config('/nonexistent/refresh.toml')


if __name__ == '__main__':
    unittest.main()
