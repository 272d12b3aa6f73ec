#!/usr/bin/env python3
"""
Moloch CLI

Usage:
    moloch config [--config PATH]
    moloch simulate SCENARIO.json [--config PATH] [--log-level LEVEL]

A scenario file is a JSON object:

    {
      "pool": "moloch-pool",
      "balances": {"0": 1000, "1": 2000, "2": 3000, "3": 4000},
      "steps": [
        {"op": "summon", "founder": "1", "period_duration": 10, ...},
        {"op": "custody", "caller": "2", "amount": 50},
        {"op": "submit_proposal", "caller": "1", "applicant": "2",
         "token_tribute": 50, "shares_requested": 5, "details": "x"},
        {"op": "advance", "seconds": 20},
        {"op": "submit_vote", "caller": "1", "proposal_index": 0, "vote": 1},
        {"op": "advance", "periods": 6},
        {"op": "process_proposal", "caller": "3", "proposal_index": 0}
      ]
    }

Summon parameters missing from the summon step come from the configuration.
A step may set "expect_error" to the name of the exception it should raise.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import MolochConfig, SummonConfig, load_config
from ..constants import SUMMON_DEFAULTS
from ..exceptions import MolochError
from ..governance.engine import DEFAULT_POOL_ACCOUNT, MolochEngine
from ..ledger import InMemoryEventSink, InMemoryLedger, ManualClock
from ..logger import configure_logging, get_logger

logger = get_logger(__name__)

console = Console()


def _load(config_path: Optional[str]) -> MolochConfig:
    try:
        cfg = load_config(config_path)
        cfg.validate()
    except MolochError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    return cfg


def _setup_logging(cfg: MolochConfig, log_level: Optional[str]) -> None:
    configure_logging(
        log_level=log_level or cfg.logging.level,
        log_file=Path(cfg.logging.file) if cfg.logging.file else None,
        file_output=bool(cfg.logging.file),
    )


@click.group()
@click.version_option(version=__version__, prog_name="moloch")
def cli():
    """Moloch governance engine."""
    pass


# ══════════════════════════════════════════════════════════════════════
#  config
# ══════════════════════════════════════════════════════════════════════

@cli.command("config")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to moloch.toml")
def config_cmd(config_path: Optional[str]):
    """Print the validated configuration."""
    cfg = _load(config_path)

    for section, values in cfg.to_dict().items():
        table = Table(title=section.capitalize(), title_justify="left")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="bold white", justify="right")
        for key, value in values.items():
            table.add_row(key, str(value) if value != "" else "-")
        console.print(table)


# ══════════════════════════════════════════════════════════════════════
#  simulate
# ══════════════════════════════════════════════════════════════════════

def _summon_config(step: Dict[str, Any], defaults: SummonConfig) -> SummonConfig:
    params = defaults.to_dict()
    params.update({k: step[k] for k in SUMMON_DEFAULTS if k in step})
    return SummonConfig.from_dict(params)


def run_step(engine: MolochEngine, clock: ManualClock, step: Dict[str, Any], cfg: MolochConfig) -> Any:
    """Apply one scenario step; returns the operation's result."""
    op = step.get("op")
    if op == "advance":
        seconds = step.get("seconds", 0)
        if "periods" in step:
            seconds += step["periods"] * engine.state.summon.period_duration
        return clock.advance(seconds)
    if op == "summon":
        return engine.summon_with_config(str(step["founder"]), _summon_config(step, cfg.summon))
    if op == "custody":
        return engine.custody(str(step["caller"]), step["amount"])
    if op == "withdraw_custody":
        return engine.withdraw_custody(str(step["caller"]), step["amount"])
    if op == "submit_proposal":
        return engine.submit_proposal(
            str(step["caller"]),
            str(step["applicant"]),
            step.get("token_tribute", 0),
            step.get("shares_requested", 0),
            step.get("details", "").encode(),
        )
    if op == "submit_vote":
        return engine.submit_vote(str(step["caller"]), step["proposal_index"], step["vote"])
    if op == "process_proposal":
        return engine.process_proposal(str(step["caller"]), step["proposal_index"])
    if op == "ragequit":
        return engine.ragequit(str(step["caller"]), step["shares"])
    if op == "abort":
        return engine.abort(str(step["caller"]), step["proposal_index"])
    if op == "update_delegate_key":
        return engine.update_delegate_key(str(step["caller"]), str(step["new_delegate_key"]))
    raise click.ClickException(f"Unknown scenario op: {op!r}")


def _print_members(engine: MolochEngine) -> None:
    table = Table(title="Members")
    table.add_column("Account", style="cyan")
    table.add_column("Delegate", style="cyan")
    table.add_column("Shares", justify="right")
    table.add_column("Highest YES", justify="right")
    for member in engine.state.registry.members():
        table.add_row(
            member.account,
            member.delegate_key,
            str(member.shares),
            str(member.highest_index_yes_vote),
        )
    console.print(table)


def _print_proposals(engine: MolochEngine) -> None:
    table = Table(title="Proposals")
    table.add_column("#", justify="right", style="bold yellow")
    table.add_column("Applicant", style="cyan")
    table.add_column("Shares", justify="right")
    table.add_column("Tribute", justify="right")
    table.add_column("Yes", justify="right")
    table.add_column("No", justify="right")
    table.add_column("State")
    for proposal in engine.state.queue:
        state = engine.proposal_state(proposal.index)
        label = "ABORTED" if proposal.aborted and not proposal.processed else state.name
        style = {"PASSED": "green", "REJECTED": "red", "ABORTED": "red"}.get(label, "")
        table.add_row(
            str(proposal.index),
            proposal.applicant,
            str(proposal.shares_requested),
            str(proposal.token_tribute),
            str(proposal.yes_votes),
            str(proposal.no_votes),
            f"[{style}]{label}[/{style}]" if style else label,
        )
    console.print(table)


def _print_balances(ledger: InMemoryLedger, accounts: List[str]) -> None:
    table = Table(title="Balances")
    table.add_column("Account", style="cyan")
    table.add_column("Free balance", justify="right")
    for account in accounts:
        table.add_row(account, str(ledger.free_balance(account)))
    console.print(table)


@cli.command("simulate")
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to moloch.toml")
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level",
)
@click.option("--events/--no-events", default=False, help="Print emitted events as JSON")
def simulate_cmd(scenario: str, config_path: Optional[str], log_level: Optional[str], events: bool):
    """Replay SCENARIO against an in-memory ledger and a manual clock."""
    cfg = _load(config_path)
    _setup_logging(cfg, log_level)

    try:
        with open(scenario, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Scenario is not valid JSON: {e}")
    if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
        raise click.ClickException("Scenario must be an object with a 'steps' list")

    logger.info(f"Replaying {len(data['steps'])} steps from {scenario}")

    pool = data.get("pool", DEFAULT_POOL_ACCOUNT)
    balances = {str(k): v for k, v in data.get("balances", {}).items()}
    try:
        ledger = InMemoryLedger(balances)
    except MolochError as e:
        raise click.ClickException(f"Invalid balances: {e}")
    clock = ManualClock(data.get("start_time", 0))
    sink = InMemoryEventSink()
    engine = MolochEngine(ledger, clock=clock, sink=sink, pool_account=pool, limits=cfg.limits)

    for number, step in enumerate(data["steps"], 1):
        expected = step.get("expect_error")
        try:
            run_step(engine, clock, step, cfg)
        except MolochError as e:
            if expected == type(e).__name__:
                click.echo(click.style(f"step {number}: {step.get('op')} failed as expected ({expected})", fg="yellow"))
                continue
            raise click.ClickException(f"Step {number} ({step.get('op')}) failed: {type(e).__name__}: {e}")
        if expected:
            raise click.ClickException(f"Step {number} ({step.get('op')}) should have raised {expected}")

    if not engine.summoned:
        raise click.ClickException("Scenario never summoned the DAO")

    try:
        engine.check_invariants()
    except MolochError as e:
        raise click.ClickException(f"Invariant check failed: {e}")

    console.print(
        f"[bold]Period {engine.current_period()}[/bold]  "
        f"total shares {engine.total_shares()}  guild bank {engine.guild_bank()}"
    )
    _print_members(engine)
    _print_proposals(engine)
    _print_balances(ledger, sorted(set(balances) | {pool}))

    if events:
        click.echo(json.dumps([e.to_dict() for e in sink.events], indent=2))


if __name__ == "__main__":
    cli()
