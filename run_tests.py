#!/usr/bin/env python3
"""
Test runner script for Jarvis NLP.

Wraps pytest with the marker selections and coverage options used in CI.
"""

import argparse
import subprocess
import sys
from pathlib import Path


def run_tests(args):
    """Run the test suite with specified options."""
    cmd = [sys.executable, "-m", "pytest", "src/jarvis_nlp/tests"]

    if args.verbose:
        cmd.extend(["-v", "-s"])
    else:
        cmd.append("-q")

    if args.unit:
        cmd.extend(["-m", "unit"])
    elif args.integration:
        cmd.extend(["-m", "integration"])
    elif args.cli:
        cmd.extend(["-m", "cli"])

    if args.coverage:
        cmd.extend([
            "--cov=src/jarvis_nlp",
            "--cov-report=html",
            "--cov-report=term-missing"
        ])

    if args.pytest_args:
        cmd.extend(args.pytest_args.split())

    print(f"Running command: {' '.join(cmd)}")
    print("-" * 60)

    try:
        result = subprocess.run(cmd, cwd=Path(__file__).parent)
        return result.returncode
    except KeyboardInterrupt:
        print("\nTest run interrupted by user")
        return 1


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run Jarvis NLP tests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py                    # Run all tests
  python run_tests.py --unit             # Run only unit tests
  python run_tests.py --integration      # Run only end-to-end pipeline tests
  python run_tests.py --coverage         # Run with coverage reporting
        """
    )

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument("--unit", action="store_true", help="Run only unit tests")
    selection.add_argument("--integration", action="store_true", help="Run only integration tests")
    selection.add_argument("--cli", action="store_true", help="Run only CLI tests")

    parser.add_argument("--verbose", "-v", action="store_true", help="Run tests with verbose output")
    parser.add_argument("--coverage", action="store_true", help="Generate coverage report")
    parser.add_argument("--pytest-args", type=str, help="Additional arguments to pass to pytest")

    args = parser.parse_args()

    try:
        subprocess.run([sys.executable, "-m", "pytest", "--version"], capture_output=True, check=True)
    except subprocess.CalledProcessError:
        print("❌ pytest is not installed or not available")
        print("💡 Install with: pip install -e .[test]")
        return 1

    return run_tests(args)


if __name__ == "__main__":
    sys.exit(main())
