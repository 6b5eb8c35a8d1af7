"""Entry point for running the editor as a module: python -m fishbone"""

import sys
from .ui import main

if __name__ == "__main__":
    sys.exit(main())
