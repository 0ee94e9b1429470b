"""Entry point for `python -m decktutor`."""

import sys

from decktutor.cli.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
