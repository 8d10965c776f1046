"""CLI entry point for axishair.cli module.

Enables execution via: python -m axishair.cli CONSULTATION_ID
"""

from axishair.cli.watch_generation import main

if __name__ == "__main__":
    main()
