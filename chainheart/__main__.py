"""Allow ``python -m chainheart``."""

from chainheart.cli import main

main()
