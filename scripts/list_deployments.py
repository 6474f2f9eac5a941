#!/usr/bin/python3


from itertools import groupby
from typing import List

import click

from oracle_deployment.artifacts import ArtifactEntry, read_artifacts
from oracle_deployment.types import Profile


def _display_artifact_entries(profile_name: str, entries: List[ArtifactEntry]) -> None:
    """Display artifact entries grouped by chain ID."""
    click.secho(f"\n{profile_name} profile", fg="green")
    entries = sorted(entries, key=lambda e: (e.chain_id, e.role))
    for chain_id, chain_entries in groupby(entries, key=lambda e: e.chain_id):
        click.secho(f"    Chain {chain_id}", fg="yellow")
        for index, entry in enumerate(chain_entries, start=1):
            click.secho(
                f"        {index}. {entry.role} ({entry.contract_name}) {entry.address}", fg="cyan"
            )


@click.command(name="list-deployments")
@click.option(
    "--profile",
    "-p",
    "config",
    help="Deployment profile whose artifacts should be listed.",
    type=Profile(),
    required=True,
)
def cli(config):
    """List the confirmed deployments recorded for a profile."""
    if not config.artifacts_filepath.exists():
        click.echo(f"No deployments recorded at {config.artifacts_filepath}.")
        return
    _display_artifact_entries(config.name, read_artifacts(config.artifacts_filepath))


if __name__ == "__main__":
    cli()
