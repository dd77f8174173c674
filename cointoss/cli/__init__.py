"""
cointoss.cli
------------

Developer CLI for the coin-toss game. Everything runs in-process against the
reference in-memory collaborators; no node is required.

Commands:
  - params          : Show the game configuration (file, env, or devnet defaults).
  - keygen          : Generate a BN254 resolver key pair.
  - claim-amount    : Compute the per-winner payout.
  - check-timestamp : Validate a caller timestamp against a trusted clock.
  - simulate        : Play a full round in memory and print the summary.

Example:
  cointoss claim-amount --bettors 3 --winners 2
  cointoss simulate --sides heads,tails,tails --coin 1,0,0
  python -m cointoss simulate --reveal-phase
"""

from __future__ import annotations

import json
import sys
from typing import Any, List, NoReturn, Optional, Sequence

import typer

from ..config import CoinTossConfig
from ..constants import DEFAULT_BET_AMOUNT, DEFAULT_TIMESTAMP_JITTER_S
from ..elgamal import keygen
from ..errors import CoinTossError
from ..payout import compute_claim_amount
from ..simulate import build_devnet, run_round
from ..utils.time import validate_timestamp

__all__ = ["app", "main"]

app = typer.Typer(
    name="cointoss",
    help="Animica private coin toss (bet → roll → oracle → reveal → claim).",
    no_args_is_help=True,
    add_completion=False,
)


def _emit(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _fail(e: CoinTossError) -> NoReturn:
    typer.echo(json.dumps(e.to_dict(), sort_keys=True, default=str), err=True)
    raise typer.Exit(code=1)


def _parse_sides(raw: str) -> List[bool]:
    sides: List[bool] = []
    for tok in (t.strip().lower() for t in raw.split(",") if t.strip()):
        if tok in {"heads", "h", "0", "false"}:
            sides.append(False)
        elif tok in {"tails", "t", "1", "true"}:
            sides.append(True)
        else:
            raise typer.BadParameter(f"unknown side {tok!r} (use heads/tails)")
    if not sides:
        raise typer.BadParameter("at least one bettor is required")
    return sides


@app.command("params")
def cmd_params(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="JSON or YAML config file."),
    from_env: bool = typer.Option(False, "--env", help="Load from COINTOSS_* environment variables."),
) -> None:
    """Show the game configuration."""
    try:
        if config:
            cfg = CoinTossConfig.from_file(config)
        elif from_env:
            cfg = CoinTossConfig.from_env()
        else:
            _, pk = keygen()
            cfg = CoinTossConfig.devnet(pk)
    except CoinTossError as e:
        _fail(e)
    _emit(cfg.to_dict())


@app.command("keygen")
def cmd_keygen(
    private_key: Optional[int] = typer.Option(None, "--private-key", help="Derive from a fixed scalar (devnet only)."),
) -> None:
    """Generate a resolver key pair (exponential ElGamal on BN254 G1)."""
    try:
        sk, pk = keygen(private_key)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    _emit({"private_key": hex(sk), "public_key": pk.to_hex()})


@app.command("claim-amount")
def cmd_claim_amount(
    bettors: int = typer.Option(..., "--bettors", "-b", min=0, help="Number of bets in the round."),
    winners: int = typer.Option(..., "--winners", "-w", min=0, help="Number of winning bets."),
    bet_amount: int = typer.Option(DEFAULT_BET_AMOUNT, "--bet-amount", min=1, help="Stake per bet."),
) -> None:
    """Per-winner payout: floor(bettors * bet_amount / winners)."""
    try:
        amount = compute_claim_amount(bettors, winners, bet_amount)
    except CoinTossError as e:
        _fail(e)
    _emit({"bettors": bettors, "winners": winners, "bet_amount": bet_amount, "claim_amount": amount})


@app.command("check-timestamp")
def cmd_check_timestamp(
    provided: int = typer.Option(..., "--provided", help="Caller-supplied UNIX seconds."),
    now: int = typer.Option(..., "--now", help="Trusted clock UNIX seconds."),
    jitter: int = typer.Option(DEFAULT_TIMESTAMP_JITTER_S, "--jitter", min=0, help="Accepted skew in seconds."),
) -> None:
    """Accept iff now <= provided <= now + jitter."""
    try:
        validate_timestamp(provided, now, jitter)
    except CoinTossError as e:
        _fail(e)
    _emit({"ok": True, "provided": provided, "now": now, "jitter": jitter})


@app.command("simulate")
def cmd_simulate(
    sides: str = typer.Option("heads,tails,tails", "--sides", "-s", help="Comma-separated bettor sides."),
    coin: Optional[str] = typer.Option(None, "--coin", help="Comma-separated contribution bits (random if omitted)."),
    reveal_phase: bool = typer.Option(False, "--reveal-phase", help="Use the explicit REVEAL phase topology."),
    private_key: Optional[int] = typer.Option(None, "--private-key", help="Fixed resolver key (devnet only)."),
    rounds: int = typer.Option(1, "--rounds", "-n", min=1, max=100, help="Rounds to play back to back."),
) -> None:
    """Play full rounds against in-memory collaborators and print the summaries."""
    parsed = _parse_sides(sides)
    bits: Optional[List[int]] = None
    if coin is not None:
        bits = [int(b) & 1 for b in coin.split(",") if b.strip()]
        if len(bits) != len(parsed):
            raise typer.BadParameter("--coin needs one bit per bettor")
    net = build_devnet(private_key=private_key, reveal_phase=reveal_phase)
    summaries = []
    try:
        for _ in range(rounds):
            summary = run_round(net, parsed, coin=bits)
            summaries.append(summary)
            if summary["status"] != "claimed":
                break
    except CoinTossError as e:
        _fail(e)
    _emit(summaries[0] if rounds == 1 else summaries)


def main(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - thin wrapper
    """Entry-point for the `cointoss` console script and `python -m cointoss`."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="cointoss")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
