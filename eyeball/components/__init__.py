"""Components layer - the operations themselves.

Components are leaf modules that:
- Do NOT import services or interfaces
- Raise EyeballError subclasses; they never build result objects
- ARE imported and used BY services

Subpackages:
- introspection: static discover, source and search
- execution: sandbox-backed inspect, doc, call, exec, probe and reload
- analysis: module index, deps, callers and imports
- testing: pytest runner and report parsing
"""
