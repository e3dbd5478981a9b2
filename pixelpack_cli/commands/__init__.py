"""
CLI command modules.
"""

from pixelpack_cli.commands import artifacts, deploy, networks

__all__ = ["artifacts", "deploy", "networks"]
