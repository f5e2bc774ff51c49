"""
MCP server package.
"""
