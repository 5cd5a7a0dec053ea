#!/usr/bin/env python3
"""
queue2epub - Queued Articles to EPUB
Convenient entry point script in project root.
"""

import sys
import os

# Add project root to Python path for the generators and src packages
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

# Import and run the CLI
from src.cli import main

if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        print("\n⚠️  Application interrupted by user")
        sys.exit(1)
