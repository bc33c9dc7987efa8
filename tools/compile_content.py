#!/usr/bin/env python3
"""Run the content compiler from a site checkout: python tools/compile_content.py"""

import sys

from content_compiler.main import main

if __name__ == "__main__":
    sys.exit(main())
