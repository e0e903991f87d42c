"""Allow ``python -m cargo_hdk``."""

from cargo_hdk.app import main

main()
