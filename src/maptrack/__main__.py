"""Entry point for running maptrack as a module.

Usage:
    python -m maptrack [command] [options]
"""

from maptrack.cli import main

if __name__ == "__main__":
    main()
