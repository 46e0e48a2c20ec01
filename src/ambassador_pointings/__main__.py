"""Allow `python -m ambassador_pointings`."""

from .cli import main

if __name__ == "__main__":
    main()
