#!/usr/bin/env python3
"""
Main entry point for the YouTube playlist creator CLI
"""

import asyncio
import sys

from playlist_creator.cli import main

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
