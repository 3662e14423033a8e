#!/usr/bin/env python
"""
Run script for notecalc.
Starts the web server, or evaluates a note when given command line arguments.
"""

from notecalc.app import main

if __name__ == "__main__":
    main()
