"""Console script entry point for the filescape command."""

import sys


def main() -> int:
    """Entry point for filescape command.

    Returns:
        Exit code
    """
    from filescape.__main__ import main as _main
    return _main()


if __name__ == "__main__":
    sys.exit(main())
