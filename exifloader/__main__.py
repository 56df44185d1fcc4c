"""Allow ``python -m exifloader``."""
import sys

from .cli import main

sys.exit(main())
