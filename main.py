#!/usr/bin/env python3
"""
stackview - commit stacks with drag-and-drop history editing

This is a convenience wrapper for running from the repo root.
The actual entry point is stackview.main:main (for pip install).
"""

from stackview.main import main

if __name__ == "__main__":
    main()
