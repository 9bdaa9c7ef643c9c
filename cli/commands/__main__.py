"""Entry point for ``python -m cli.commands``."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from cli.commands.main import cli

if __name__ == "__main__":
    cli()
