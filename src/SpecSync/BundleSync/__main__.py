"""Allow ``python -m SpecSync.BundleSync``."""

from .cli import cli_main

if __name__ == "__main__":  # pragma: no cover
    cli_main()
