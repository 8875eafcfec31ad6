"""Entry point for ``python -m elflens``."""

from elflens.cli import main

if __name__ == "__main__":
    main()
