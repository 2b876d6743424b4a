"""Allow `python -m envcraft`."""
import sys

from .cli import main

sys.exit(main())
