#!/usr/bin/env python3
# Copyright 2023 The ChromiumOS Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

"""Writes compile_commands.json to the root of the Bazel workspace.

Generated from refresh.template.py; run it with `bazel run` or with
BUILD_WORKSPACE_DIRECTORY pointing at the workspace.
"""

import json
import os
import re
import shlex
import subprocess
import sys


TARGET_FLAGS = [
        # {get_commands}
]

SKIP_HEADER_EXTRACTION = False  # {skip_header_extraction}
REPLACE_OUTPUT_PATH = False  # {replace_output_path}
REPLACE_EXTERNAL_PATH = False  # {replace_external_path}

# Flags whose value is the next argument and that only affect outputs.
OUTPUT_FLAGS_WITH_VALUE = ('-o', '-MF', '-MT', '-MQ')
OUTPUT_FLAGS = ('-MD', '-MMD')

# Flags that may carry a path glued to the flag itself.
PATH_FLAG_PREFIX = r'(-I|-iquote|-isystem|-idirafter|-include|-imacros|-F|-L|[^=]*=)?'


def log(*args):
    print('[compdb]', *args, file=sys.stderr)


def find_source_file(arguments):
    try:
        i = arguments.index('-c')
    except ValueError:
        return None
    if i + 1 == len(arguments):
        return None
    return arguments[i + 1]


def header_query_command(arguments):
    """Turns a compile command into one that lists the included files"""
    cmd = []
    skip = False
    for arg in arguments:
        if skip:
            skip = False
            continue
        if arg in OUTPUT_FLAGS_WITH_VALUE:
            skip = True
            continue
        if arg in OUTPUT_FLAGS or arg.startswith(('-MF', '-MT', '-MQ')):
            continue
        cmd.append(arg)
    return cmd + ['-M']


def parse_make_dependencies(text):
    """Returns the prerequisites listed in make-style dependency output"""
    text = text.replace('\\\n', ' ')
    _, _, prerequisites = text.partition(': ')
    # Escaped spaces are part of the path.
    words = re.split(r'(?<!\\)\s+', prerequisites.strip())
    return [word.replace('\\ ', ' ') for word in words if word]


def find_headers(arguments, source, directory):
    cmd = header_query_command(arguments)
    result = subprocess.run(
        cmd, cwd=directory, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
    )
    if result.returncode != 0:
        log(f'Warning: cannot list headers of {source}:', result.stderr.strip())
        return []
    return [path for path in parse_make_dependencies(result.stdout) if path != source]


def replace_path_prefix(value, prefix, replacement):
    pattern = '^' + PATH_FLAG_PREFIX + re.escape(prefix)
    return re.sub(pattern, lambda m: (m.group(1) or '') + replacement, value)


def rewrite_paths(arguments, execution_root):
    rewrites = []
    if REPLACE_OUTPUT_PATH:
        rewrites.append(('bazel-out/', os.path.join(execution_root, 'bazel-out') + '/'))
    if REPLACE_EXTERNAL_PATH:
        rewrites.append(('external/', os.path.join(execution_root, 'external') + '/'))
    result = []
    for arg in arguments:
        for prefix, replacement in rewrites:
            arg = replace_path_prefix(arg, prefix, replacement)
        result.append(arg)
    return result


def query_actions(directory, target, flags):
    cmd = [
        'bazel',
        'aquery',
        f'mnemonic("(Objc|Cpp)Compile", deps({target}))',
        '--output=jsonproto',
        '--include_artifacts=false',
        *shlex.split(flags),
    ]
    log('Running', shlex.join(cmd))
    output = subprocess.check_output(cmd, cwd=directory)
    return json.loads(output).get('actions', [])


def bazel_info(directory, key):
    return subprocess.check_output(
        ['bazel', 'info', key], cwd=directory, text=True, stderr=subprocess.DEVNULL
    ).rstrip()


def extract(directory, execution_root):
    entries = []
    # Overlapping targets report the same files; the first command wins.
    seen = set()
    for target, flags in TARGET_FLAGS:
        for action in query_actions(directory, target, flags):
            arguments = action['arguments']
            source = find_source_file(arguments)
            if source is None:
                log('Warning: skipping action without -c:', shlex.join(arguments))
                continue
            if source in seen:
                continue
            files = [source]
            if not SKIP_HEADER_EXTRACTION:
                for header in find_headers(arguments, source, directory):
                    if header not in seen and header not in files:
                        files.append(header)
            seen.update(files)
            arguments = rewrite_paths(arguments, execution_root)
            for file in files:
                entries.append(
                    {
                        'file': rewrite_paths([file], execution_root)[0],
                        'arguments': arguments,
                        'directory': directory,
                    }
                )
    return entries


def main():
    directory = os.environ['BUILD_WORKSPACE_DIRECTORY']

    execution_root = None
    if REPLACE_OUTPUT_PATH or REPLACE_EXTERNAL_PATH:
        execution_root = bazel_info(directory, 'execution_root')
    # The header queries run the unrewritten commands from the workspace, so
    # external/ must resolve there even when the output uses absolute paths.
    log('Ensuring external/ symlink')
    try:
        os.symlink('bazel-out/../../../external', os.path.join(directory, 'external'))
    except FileExistsError:
        pass

    entries = extract(directory, execution_root)

    output_file = os.path.join(directory, 'compile_commands.json')
    log('Writing', output_file)
    with open(output_file, 'w', encoding='utf-8') as file:
        json.dump(entries, file, indent=2)
        file.write('\n')

    log(f'Done, {len(entries)} entries')


if __name__ == '__main__':
    main()
