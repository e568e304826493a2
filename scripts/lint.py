#!/usr/bin/env python3
"""
Run flake8, mypy and black over the hubspot-mcp sources and tests.
"""
import argparse
import logging
import subprocess
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("hubspot-mcp-lint")

ROOT_DIR = Path(__file__).parent.parent.absolute()

CHECK_DIRS = [
    ROOT_DIR / "src" / "hubspot_mcp",
    ROOT_DIR / "tests",
    ROOT_DIR / "scripts",
]

SKIP_PARTS = {"__pycache__", ".venv", "build", "dist"}


def python_files(dirs):
    files = []
    for directory in dirs:
        if not directory.exists():
            logger.warning(f"Skipping missing directory {directory}")
            continue
        files.extend(
            path
            for path in sorted(directory.rglob("*.py"))
            if not SKIP_PARTS.intersection(path.parts)
        )
    return files


def run_command(cmd, description):
    """Run a command and return whether it succeeded."""
    logger.info(f"{description}...")
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode == 0:
        logger.info(f"{description} passed")
        return True
    logger.error(f"{description} failed")
    for output in (result.stdout, result.stderr):
        if output:
            logger.error(output)
    return False


def run_linting(dirs, auto_fix=False):
    files = [str(path) for path in python_files(dirs)]
    logger.info(f"Found {len(files)} Python files to check")
    if not files:
        return 0

    if auto_fix:
        run_command(["black", *files], "Black formatting")

    results = [
        run_command(["flake8", "--max-line-length", "100", *files], "Flake8 linting"),
        run_command(["mypy", "--ignore-missing-imports", *files], "Mypy type checking"),
        run_command(["black", "--check", *files], "Black format checking"),
    ]
    if all(results):
        logger.info("All linting checks passed")
        return 0
    logger.error("Some linting checks failed")
    return 1


def main():
    parser = argparse.ArgumentParser(description="Lint the hubspot-mcp codebase.")
    parser.add_argument(
        "--fix", action="store_true", help="Format with black before checking"
    )
    parser.add_argument("--dirs", nargs="+", help="Directories to check")
    args = parser.parse_args()

    dirs = [Path(d).absolute() for d in args.dirs] if args.dirs else CHECK_DIRS
    return run_linting(dirs, auto_fix=args.fix)


if __name__ == "__main__":
    sys.exit(main())
