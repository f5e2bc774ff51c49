"""Allow ``python -m eyeball``."""

from eyeball.interfaces.cli.cli_main import main

if __name__ == "__main__":
    raise SystemExit(main())
