#!/usr/bin/env python3
"""
Entry point for running the Axicov SDK server package directly.
This allows the package to be executed as: python -m axicov_sdk
"""

from . import main

if __name__ == "__main__":
    main()
