#!/usr/bin/env python3
"""
Test runner script for TaskPilot with service checking and categorization.
"""

import argparse
import os
import subprocess
import sys
from typing import List

# Add the project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from tests.utils.check_services import check_services
from tests.utils.test_config import TEST_CATEGORIES


def run_pytest(args: List[str]) -> int:
    """Run pytest with given arguments."""
    cmd = [sys.executable, "-m", "pytest"] + args
    print(f"Running: {' '.join(cmd)}")
    return subprocess.call(cmd, cwd=project_root)


def main():
    """Main test runner function."""
    parser = argparse.ArgumentParser(description="TaskPilot Test Runner")
    parser.add_argument(
        "categories",
        nargs="*",
        choices=list(TEST_CATEGORIES.keys()),
        help="Test categories to run (default: all)",
    )
    parser.add_argument(
        "--with-services",
        action="store_true",
        help="Also run tests that need live Redis, Ollama or backend",
    )
    parser.add_argument("--quiet", action="store_true", help="Quiet output")

    args = parser.parse_args()
    categories = args.categories or list(TEST_CATEGORIES.keys())

    marker = " or ".join(categories)
    if args.with_services:
        print("🔍 Checking external services...")
        check_services()
    else:
        marker = f"({marker}) and not requires_services"

    pytest_args = ["-m", marker, "-q" if args.quiet else "-v", "tests/"]

    print(f"🧪 Running tests for categories: {', '.join(categories)}")
    exit_code = run_pytest(pytest_args)

    if exit_code == 0:
        print("✅ All tests passed!")
    else:
        print("❌ Some tests failed!")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
