"""eyeball - look at Python code without opening files.

The main entry points are the interfaces:
    from eyeball.interfaces.cli.cli_main import main
    from eyeball.interfaces.mcp.server import main as mcp_main

Operations live on the service:
    from eyeball.services.eyeball_svc import EyeballService
"""

from eyeball.__version__ import __version__

__all__ = ["__version__"]
