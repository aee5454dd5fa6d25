"""
Run the meshcli command line tool.
"""

import sys

from meshcli.cli import main

if __name__ == "__main__":
    sys.exit(main())
