"""Child-interpreter sandbox: launcher (parent side) and worker (child side)."""
