"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m pixelpack_cli deploy --network NAME [--tags T ...] [--deployments-dir DIR] [--json]
    python -m pixelpack_cli artifacts --network NAME [--json]
    python -m pixelpack_cli networks [--json]
    python -m pixelpack_cli config --init [--path FILE]
    python -m pixelpack_cli config --show

Environment Variables:
    PIXELPACK_LOG_LEVEL             Log level (default: INFO)
    PIXELPACK_LOG_FILE              Also log to this file
    PIXELPACK_CONFIRMATIONS         Confirmation depth per transaction
    PIXELPACK_FULFILLMENT_TIMEOUT   Live oracle wait bound in seconds
    PIXELPACK_SKIP_IF_FUNDED        Do not fund a target that already holds the amount
    PIXELPACK_DEPLOYMENTS_DIR       Artifact directory (default: deployments)
    <NETWORK>_RPC_URL               RPC endpoint for a live network (e.g. RINKEBY_RPC_URL)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from orchestrator.registry import RunMode

from pixelpack_cli import __version__
from pixelpack_cli.commands import artifacts, deploy, networks
from pixelpack_cli.config import load_config, get_default_config_template


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="pixelpack",
        description="PixelPack deployment CLI - Deploy contracts, fund them and mint through the VRF workflow.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./pixelpack.json, ./pixelpack.yaml or ~/.config/pixelpack/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- deploy command ---
    deploy_parser = subparsers.add_parser(
        "deploy",
        help="Run the deployment pipeline",
        description="Run the steps selected by --tags against one network.",
    )
    deploy_parser.add_argument(
        "--network", "-n",
        type=str,
        default="hardhat",
        help="Target network name (default: hardhat)",
    )
    deploy_parser.add_argument(
        "--tags", "-t",
        nargs="+",
        default=None,
        metavar="TAG",
        help="Step tags to run (default: all). Known tags: " + ", ".join(m.value for m in RunMode),
    )
    deploy_parser.add_argument(
        "--deployments-dir",
        type=str,
        default=None,
        help="Artifact directory (default: from config)",
    )
    deploy_parser.add_argument(
        "--no-persist",
        action="store_true",
        default=False,
        help="Keep artifacts in memory only",
    )
    deploy_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    deploy_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks for unexpected errors",
    )
    deploy_parser.set_defaults(func=deploy.deploy_cmd)

    # --- artifacts command ---
    artifacts_parser = subparsers.add_parser(
        "artifacts",
        help="List persisted artifacts",
        description="Show the deployment artifacts recorded for a network.",
    )
    artifacts_parser.add_argument("--network", "-n", type=str, required=True, help="Network name")
    artifacts_parser.add_argument("--deployments-dir", type=str, default=None, help="Artifact directory")
    artifacts_parser.add_argument("--json", action="store_true", help="JSON output")
    artifacts_parser.set_defaults(func=artifacts.artifacts_cmd)

    # --- networks command ---
    networks_parser = subparsers.add_parser(
        "networks",
        help="Show the network table",
        description="Show the static per-network parameters.",
    )
    networks_parser.add_argument("--json", action="store_true", help="JSON output")
    networks_parser.set_defaults(func=networks.networks_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage CLI configuration",
        description="Print a template or display the effective configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Print a template configuration (or write it with --path)",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=None,
        help="Write the template to this file instead of stdout",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        template = get_default_config_template()
        if not args.path:
            print(template, end="")
            return EXIT_SUCCESS

        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(template)
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (PIXELPACK_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        config = args.cli_config
        config_dict = {
            "log_level": config.log_level,
            "log_file": config.log_file,
            "default_output_format": config.default_output_format,
        }
        config_dict.update(config.runtime.to_dict())
        print(json.dumps(config_dict, indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: pixelpack config [--init|--show]")
    print("  --init  Print a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=pipeline or runtime error, 2=configuration error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
