"""Version information for eyeball."""

# Semantic versioning: MAJOR.MINOR.PATCH
# MAJOR: Breaking changes to the result object or exit codes
# MINOR: New commands or options, backward compatible
# PATCH: Bug fixes, backward compatible

__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.3.0 - Module hot-reload with API snapshots, MCP server
# 0.2.0 - Probes with fixtures and patches, pytest runner with coverage
# 0.1.0 - Static discovery, source, search, deps/callers/imports analysis
