import os
import re
import unittest

import shapechain

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


class TestPackageVersion(unittest.TestCase):
    def test_matches_setup(self):
        with open(os.path.join(ROOT_DIR, "setup.py"), encoding="utf-8") as fh:
            match = re.search(r'version="([^"]+)"', fh.read())
        self.assertIsNotNone(match)
        self.assertEqual(shapechain.__version__, match.group(1))


if __name__ == "__main__":
    unittest.main()
