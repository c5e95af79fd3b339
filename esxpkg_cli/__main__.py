"""``python -m esxpkg_cli`` and the ``esxpkg`` console script."""

import sys


def main() -> int:
    from .main import main as cli_main

    return cli_main(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
