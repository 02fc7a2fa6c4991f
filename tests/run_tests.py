#!/usr/bin/env python3
import os
import sys
import unittest

if __name__ == '__main__':
    here = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, os.path.dirname(here))

    # automatically discover all tests of the form test*.py in the tests package
    test_suite = unittest.defaultTestLoader.discover(here, top_level_dir=os.path.dirname(here))

    # use the basic test runner that outputs to sys.stderr
    result = unittest.TextTestRunner().run(test_suite)
    sys.exit(not result.wasSuccessful())
