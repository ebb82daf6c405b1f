"""
CLI Entry Point for SnakeSniper.

Commands:
  run       - Start the agent (simulation mode, nothing is sent)
  run-live  - Start the agent (live mode - real transactions)
  check     - Run a single cycle and show the analysis
  config    - Show current configuration
"""

import sys

import click
from rich.console import Console
from rich.panel import Panel

from snake_sniper import __version__
from snake_sniper.config import AgentConfig
from snake_sniper.agent import CycleStatus, GameOrchestrator
from snake_sniper.errors import SignerLoadError
from snake_sniper.trading.finalizer import TransactionFinalizer
from snake_sniper.trading.wallet import load_signer

console = Console()


def _resolve_account(config: AgentConfig) -> str:
    """Signer pubkey if we have a key, otherwise the configured address."""
    if config.has_signer:
        return str(load_signer(config.wallet.private_key).pubkey())
    if config.wallet.wallet_address:
        return config.wallet.wallet_address
    raise SignerLoadError("Set SOLANA_PRIVATE_KEY or WALLET_ADDRESS", step="startup")


def _simulation_agent(config: AgentConfig) -> GameOrchestrator:
    try:
        account = _resolve_account(config)
    except SignerLoadError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    return GameOrchestrator(config, account, live_mode=False)


@click.group()
@click.version_option(version=__version__, prog_name="SnakeSniper")
def cli():
    """SnakeSniper - only plays the rolls that win."""
    pass


@cli.command()
@click.option("--poll-interval", default=None, type=float, help="Seconds between polls")
def run(poll_interval):
    """Start the agent in SIMULATION mode. Winning rolls are reported, not claimed."""
    config = AgentConfig()
    agent = _simulation_agent(config)
    if poll_interval is not None:
        agent.poll_interval = poll_interval
    agent.start()


@cli.command("run-live")
@click.option("--poll-interval", default=None, type=float, help="Seconds between polls")
@click.confirmation_option(
    prompt="This will sign and submit REAL transactions. Are you sure?"
)
def run_live(poll_interval):
    """Start the agent in LIVE mode. Winning rolls get claimed on chain."""
    config = AgentConfig()

    try:
        signer = load_signer(config.wallet.private_key)
    except SignerLoadError as e:
        console.print(f"[red]{e}[/red]")
        console.print("Set SOLANA_PRIVATE_KEY in your .env file first.")
        sys.exit(1)

    console.print(Panel(
        "[bold red]LIVE MODE ACTIVATED[/bold red]\n\n"
        "Winning rolls will be signed and submitted from:\n"
        f"[cyan]{signer.pubkey()}[/cyan]\n\n"
        f"RPC: {config.solana.rpc_url}",
        title="WARNING",
    ))

    finalizer = TransactionFinalizer.from_config(config, signer)
    agent = GameOrchestrator(config, str(signer.pubkey()), finalizer=finalizer, live_mode=True)
    if poll_interval is not None:
        agent.poll_interval = poll_interval
    agent.start()


@cli.command()
def check():
    """Run a single cycle in simulation mode and show what would happen."""
    config = AgentConfig()
    agent = _simulation_agent(config)

    console.print("[cyan]Running a single cycle...[/cyan]\n")
    outcome = agent.run_cycle()
    agent._report(outcome)

    if outcome.status.is_failure:
        sys.exit(1)
    if outcome.status == CycleStatus.SIMULATED_WIN:
        console.print("\n[green]run-live would submit the transaction for this roll.[/green]")


@cli.command()
def config():
    """Show current agent configuration."""
    cfg = AgentConfig()

    console.print(Panel(
        f"Game URL: {cfg.game.game_url}\n"
        f"HTTP timeout: {cfg.game.http_timeout:.0f}s\n"
        f"Solana RPC: {cfg.solana.rpc_url}\n"
        f"Winning squares: {sorted(cfg.winning_positions)}\n"
        f"Poll interval: {cfg.timing.poll_interval:.0f}s\n"
        f"Cool-down: {cfg.timing.cooldown:.0f}s\n"
        f"Fetch retries: {cfg.timing.fetch_attempts} x {cfg.timing.fetch_retry_delay:.0f}s\n"
        f"Private key: {'Configured' if cfg.has_signer else 'Not set'}\n"
        f"Wallet address: {cfg.wallet.wallet_address or 'Not set'}",
        title="[bold]Agent Configuration[/bold]",
    ))


def main():
    cli()


if __name__ == "__main__":
    main()
