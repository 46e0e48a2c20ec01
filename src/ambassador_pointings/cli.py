"""Entrypoint for the interactive Ambassador pointings admin client."""

from __future__ import annotations

import sys

from .config import load_config
from .logging import configure_logging, get_logger


class CliError(Exception):
    """Raised when the CLI encounters an expected error condition."""


def main() -> None:
    try:
        config = load_config()
    except (OSError, ValueError):
        # load_config already reported the problem on stderr
        sys.exit(1)

    configure_logging(config)
    logger = get_logger("ambassador")
    logger.debug("Starting pointings shell", extra={"config": config.logging_dict()})

    from .shell import run_shell

    try:
        code = run_shell(config)
    except CliError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.stderr.write("\n")
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
