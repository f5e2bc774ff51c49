"""A module that fails at import time."""


def still_here():
    """Visible to static analysis."""
    return "static"


raise RuntimeError("import-time failure")
