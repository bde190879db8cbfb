#!/usr/bin/env python3
"""
crossscan Entrypoint
Wrapper script for Docker container
"""

import sys

from crossscan.run_dedup import main

if __name__ == "__main__":
    sys.exit(main())
