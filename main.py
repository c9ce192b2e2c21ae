"""
Main entry point for running trimerge from a source checkout.
"""

import sys

from trimerge.cli import main


if __name__ == '__main__':
    sys.exit(main())
