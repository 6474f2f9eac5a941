#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from oracle_deployment.ape_ledger import ApeLedger
from oracle_deployment.artifacts import DeploymentArtifacts
from oracle_deployment.confirm import _continue
from oracle_deployment.exceptions import DeploymentFailed, OracleDeploymentError
from oracle_deployment.networks import check_plugins
from oracle_deployment.orchestrator import OracleDeployer
from oracle_deployment.types import Profile


@click.command(cls=ConnectedProviderCommand, name="deploy-oracles")
@account_option()
@network_option(required=True)
@click.option(
    "--profile",
    "-p",
    "config",
    help="Deployment profile with assets, initial prices and lending rates.",
    type=Profile(),
    required=True,
)
@click.option(
    "--verify",
    help="Verify deployed contracts on the block explorer.",
    is_flag=True,
)
@click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)
@click.option(
    "--deadline",
    help="Stop before the next step once this many seconds have passed.",
    type=click.FloatRange(min=0),
    required=False,
)
def cli(account, network, config, verify, auto, deadline):
    """Deploy the price oracles and lending rate oracle of a lending pool."""

    check_plugins(verify=verify)
    click.echo(f"Connected to {network.name} network.")

    ledger = ApeLedger(account=account, autosign=auto, verify=verify)
    artifacts = DeploymentArtifacts(filepath=config.artifacts_filepath, chain_id=ledger.chain_id)
    click.echo(ledger.describe())
    click.echo(f"Profile: {config.name}")
    click.echo(f"Artifacts: {config.artifacts_filepath} ({len(artifacts)} known deployment(s))")
    if not auto:
        # Confirms the start of the deployment.
        _continue()

    deployer = OracleDeployer(
        config=config, ledger=ledger, artifacts=artifacts, autosign=auto, deadline=deadline
    )
    try:
        report = deployer.run()
    except DeploymentFailed as e:
        click.echo(f"\n(!) Deployment failed at step {e.step}: {e.cause}", err=True)
        click.echo(deployer.sequencer.report(), err=True)
        click.echo(
            f"Confirmed deployments are recorded in {config.artifacts_filepath}; "
            "rerun the same profile to resume.",
            err=True,
        )
        raise click.ClickException(str(e))
    except OracleDeploymentError as e:
        raise click.ClickException(str(e))

    click.echo(f"\n{deployer.sequencer.report()}")
    click.echo(f"(i) Fallback price oracle: {report.fallback_oracle}")
    click.echo(f"(i) Proxy price provider: {report.proxy_price_provider}")
    click.echo(f"(i) Lending rate oracle: {report.lending_rate_oracle}")

    if verify:
        ledger.publish([record.address for record in report.records if record.is_deployment])


if __name__ == "__main__":
    cli()
