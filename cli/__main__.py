"""Entry point for ``python -m cli``."""

import sys
from pathlib import Path

# Allow running from a source checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands.main import cli

if __name__ == "__main__":
    cli()
