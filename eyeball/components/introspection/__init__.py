"""Static introspection (AST only)."""
