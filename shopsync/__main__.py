"""Allow running shopsync as ``python -m shopsync``."""

from .cli import main

if __name__ == "__main__":
    main()
