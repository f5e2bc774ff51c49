"""
Cli package.
"""
