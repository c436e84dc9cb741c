"""Allow ``python -m udptracker``."""

from __future__ import annotations

from udptracker.cli.main import main

if __name__ == "__main__":
    main()
