"""
PixelPack CLI

Command-line interface for the deployment pipeline.

Usage:
    python -m pixelpack_cli deploy --network localhost
    python -m pixelpack_cli deploy --network rinkeby --tags fundOnly createonly
    python -m pixelpack_cli artifacts --network rinkeby
    python -m pixelpack_cli networks
"""

__version__ = "0.1.0"
