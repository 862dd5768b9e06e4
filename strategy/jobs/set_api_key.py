#!/usr/bin/env python3
"""
strategy/jobs/set_api_key.py - Store or clear the market-data API key.

Usage:
    python -m strategy.jobs.set_api_key YOUR_KEY
    python -m strategy.jobs.set_api_key --clear
"""

from pathlib import Path
from typing import Optional

import click

from config.credentials import API_KEY_ENV, DEFAULT_ENV_FILE, CredentialStore
from core.logging import setup_logging


@click.command()
@click.argument("api_key", required=False)
@click.option("--clear", is_flag=True, help="Remove the stored key (scans fall back to simulation)")
@click.option("--env-file", type=click.Path(dir_okay=False), default=str(DEFAULT_ENV_FILE))
def main(api_key: Optional[str], clear: bool, env_file: str) -> None:
    """Save the market-data API key to a .env file."""
    setup_logging(level="WARNING")
    store = CredentialStore(Path(env_file))

    if clear or not (api_key or "").strip():
        store.clear()
        click.echo(f"{API_KEY_ENV} cleared; scans will use simulated data.")
        return

    store.save(api_key)
    click.echo(f"{API_KEY_ENV} saved to {env_file}.")


if __name__ == "__main__":
    main()
