"""Allow ``python -m fm4keys.cli`` execution."""

from fm4keys.cli.manage import main

main()
