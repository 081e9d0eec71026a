"""Main entry point for the icartifact package."""
import sys

from icartifact.cli import main

if __name__ == "__main__":
    sys.exit(main())
