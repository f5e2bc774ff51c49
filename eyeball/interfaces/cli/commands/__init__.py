"""
CLI command handlers. Each takes (service, args) and returns an EyeballResult.
"""
