#!/usr/bin/env python3
"""
Test runner script for print2pdf.

Usage: python run_tests.py [all|unit|api|coverage]
"""

import subprocess
import sys


def run_command(cmd, description):
    """Run a command and print results."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print('='*60)

    try:
        result = subprocess.run(cmd, check=False, capture_output=False)
        return result.returncode == 0
    except OSError as e:
        print(f"Error running command: {e}")
        return False


def main():
    """Main test runner."""
    test_type = sys.argv[1] if len(sys.argv) > 1 else "all"

    success = True

    if test_type in ("all", "unit"):
        cmd = [sys.executable, "-m", "pytest", "tests/unit/", "-v", "--tb=short"]
        if not run_command(cmd, "Unit Tests"):
            success = False

    if test_type in ("all", "api"):
        cmd = [sys.executable, "-m", "pytest", "tests/api/", "-v", "--tb=short"]
        if not run_command(cmd, "API Tests"):
            success = False

    if test_type == "coverage":
        cmd = [
            sys.executable, "-m", "pytest",
            "--cov=print2pdf",
            "--cov-report=html",
            "--cov-report=term-missing",
            "tests/"
        ]
        if not run_command(cmd, "Coverage Tests"):
            success = False

    print(f"\n{'='*60}")
    if success:
        print("All tests passed!")
    else:
        print("Some tests failed!")
    print('='*60)

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
