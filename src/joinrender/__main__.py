"""
Entry point for running JoinRender as a module.

Usage:
    python -m joinrender
"""

import sys

from joinrender.main import main

if __name__ == "__main__":
    sys.exit(main())
