"""Allow ``python -m filing_desk``."""

from filing_desk.cli import main

main()
