#!/usr/bin/env python3
"""
Bitbucket Activity Analyzer
Reports commits and merged pull requests per contributor for the last 7 days
"""

import sys

from bitbucket_report.cli import main

if __name__ == "__main__":
    sys.exit(main())
