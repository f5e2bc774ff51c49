"""pytest invocation and report parsing."""
