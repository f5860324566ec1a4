"""Allow ``python -m songscout.cli`` execution."""

from songscout.cli.commands import main

main()
