#!/usr/bin/env python3
"""
Main entry point script for MTG Wishlist Checker.

This script can be run directly from the command line to compare a wishlist
against your card collection.
"""

import sys
from pathlib import Path

# Add the project directory to Python path
project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir))

from mtg_wishlist_checker.cli import main

if __name__ == "__main__":
    main()
