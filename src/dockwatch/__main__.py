"""Allow running as python -m dockwatch."""

from dockwatch.cli.main import main

main()
