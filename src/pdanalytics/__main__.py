#!/usr/bin/env python3
"""
pdanalytics - Main entry point for python -m pdanalytics
"""

import sys


def main():
    """Main entry point for python -m pdanalytics"""
    try:
        from pdanalytics.server import main as server_main
        server_main()
    except KeyboardInterrupt:
        print("\npdanalytics stopped by user", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
