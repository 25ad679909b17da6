import sys
from pathlib import Path

import pytest


def run_tests() -> int:
    """
    Discover and run all tests in the 'tests/' directory.
    """
    root_dir = Path(__file__).parent
    return pytest.main([str(root_dir / "tests"), "-v"])


if __name__ == '__main__':
    sys.exit(run_tests())
