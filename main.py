#!/usr/bin/env python3
"""
SatireFeed - Satirical Posts From the News
==========================================

Main application entry point.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py process-feeds URL ...     # Process RSS feeds
    python main.py process-url URL           # Process a single article
"""

from satirefeed.cli import main

if __name__ == "__main__":
    main()
