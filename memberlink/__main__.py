"""Allow running the CLI with ``python -m memberlink``."""

from memberlink import main

main()
