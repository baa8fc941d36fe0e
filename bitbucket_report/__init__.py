"""
Bitbucket Activity Report
Summarizes commits and merged pull requests per contributor for the last 7 days
"""

__version__ = "1.0.0"
