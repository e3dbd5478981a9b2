"""
CLI Networks Command

Show the static per-network table.
"""

from __future__ import annotations

import json
from argparse import Namespace

from core.config import DEFAULT_NETWORK_KEY

from pixelpack_cli.config import CLIConfig


EXIT_SUCCESS = 0


def networks_cmd(args: Namespace) -> int:
    config: CLIConfig = getattr(args, "cli_config", None) or CLIConfig()
    table = config.runtime.networks

    rows = []
    for network_id, entry in table.entries.items():
        rows.append({
            "id": network_id,
            "name": entry.name,
            "local": entry.name in table.development_chains,
            "link_token": entry.link_token,
            "vrf_coordinator": entry.vrf_coordinator,
            "key_hash": entry.key_hash,
            "fee": str(entry.fee) if entry.fee is not None else None,
            "fund_amount": str(table.fund_amount_for(network_id)),
        })

    if args.json:
        print(json.dumps(rows, indent=2))
        return EXIT_SUCCESS

    for row in rows:
        label = "default" if row["id"] == DEFAULT_NETWORK_KEY else row["id"]
        kind = "local" if row["local"] else "live"
        print(f"{label}: {row['name']} [{kind}]")
        if row["link_token"]:
            print(f"  link_token: {row['link_token']}")
        if row["vrf_coordinator"]:
            print(f"  vrf_coordinator: {row['vrf_coordinator']}")
        print(f"  fee: {row['fee']}")
        print(f"  fund_amount: {row['fund_amount']}")
    return EXIT_SUCCESS
