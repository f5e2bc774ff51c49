"""
eyeball - Interfaces Package
============================

Contains all user-facing interfaces (presentation layer).

Structure:
- cli/: command-line interface (argparse, rich for --pretty)
- mcp/: MCP server exposing the same operations as tools
"""
