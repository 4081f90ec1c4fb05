# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import doctest
import importlib
import logging
import os
import sys
import unittest
from argparse import ArgumentParser
from pathlib import Path
from pathlib import PurePath


def main(args):
    parser = ArgumentParser(description="run unittests and doctests of the package")
    parser.add_argument('--doctest-only', action='store_true')
    parser.add_argument('--unittest-only', action='store_true')
    parsed_args = parser.parse_args(args)
    suite = unittest.TestSuite()
    for python_file in sorted(_package.rglob('*.py')):
        if '__pycache__' in python_file.parts:
            continue
        module_name = _build_module_name(python_file)
        is_test = python_file.name.startswith('test_')
        if is_test and not parsed_args.doctest_only:
            _logger.debug("Load tests: %s", module_name)
            module = importlib.import_module(module_name)
            suite.addTests(unittest.defaultTestLoader.loadTestsFromModule(module))
        elif not is_test and not parsed_args.unittest_only:
            _logger.debug("Load doctests: %s", module_name)
            module = importlib.import_module(module_name)
            try:
                suite.addTests(doctest.DocTestSuite(module))
            except ValueError:
                _logger.debug("No doctests: %s", module_name)
    if os.getenv('DRY_RUN'):
        _logger.info("Dry run: would run %d tests", suite.countTestCases())
        return 0
    runner = unittest.TextTestRunner(stream=sys.stdout, verbosity=2)
    result = runner.run(suite)
    if result.wasSuccessful():
        return 0
    else:
        return 10


def _build_module_name(path: PurePath):
    """Build module name from path.

    >>> _build_module_name(_root / 'frigate_provisioning/tests/test_core.py')
    'frigate_provisioning.tests.test_core'
    """
    path = path.relative_to(_root)
    path = path.with_suffix('')
    return '.'.join(path.parts)


_logger = logging.getLogger(__name__)
_root = Path(__file__).parent
_package = _root / 'frigate_provisioning'
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

if __name__ == '__main__':
    exit(main(sys.argv[1:]))
