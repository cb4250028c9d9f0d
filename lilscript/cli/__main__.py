"""Allow running CLI as: python -m lilscript.cli"""

import sys

from .main import main

sys.exit(main())
