"""Allow ``python -m src.cli`` execution."""

import sys

from src.cli.main import main

sys.exit(main())
