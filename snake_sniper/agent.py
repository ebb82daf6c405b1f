"""
The Agent - polls the board, waits for a roll that lands on a winner.

Main loop:
1. Re-check any claim we stopped waiting on last time
2. Fetch the board state
3. Fetch the prediction (roll + ready-made transaction)
4. Evaluate the move
5. Submit the transaction, only if it wins
6. Sleep, repeat. Forever.

A failed cycle never stops the agent. It cools down and starts over.
"""

import signal
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from snake_sniper import __version__
from snake_sniper.config import AgentConfig
from snake_sniper.errors import (
    ConfirmationTimeoutError,
    FetchError,
    MissingRollError,
    PayloadError,
    SnakeSniperError,
    SubmissionError,
)
from snake_sniper.game.roll import Prediction
from snake_sniper.game.state import GameState, decode_state
from snake_sniper.markets.snakes_api import SnakesAPIClient
from snake_sniper.retry import RetryPolicy, call_with_retry
from snake_sniper.strategies.move_evaluator import MoveAnalysis, MoveEvaluator

console = Console()


class CycleStep(Enum):
    FETCHING_STATE = "fetching_state"
    FETCHING_PREDICTION = "fetching_prediction"
    EVALUATING = "evaluating"
    SUBMITTING = "submitting"
    IDLE = "idle"
    SLEEPING = "sleeping"


class CycleStatus(Enum):
    IDLE = "idle"
    WON = "won"
    SIMULATED_WIN = "simulated_win"
    ABORTED_NO_ROLL = "aborted_no_roll"
    FAILED_FETCH = "failed_fetch"
    FAILED_PARSE = "failed_parse"
    FAILED_SUBMISSION = "failed_submission"
    UNCONFIRMED = "unconfirmed"
    FAILED_UNEXPECTED = "failed_unexpected"

    @property
    def is_failure(self) -> bool:
        return self in (CycleStatus.ABORTED_NO_ROLL, CycleStatus.FAILED_FETCH,
                        CycleStatus.FAILED_PARSE, CycleStatus.FAILED_SUBMISSION,
                        CycleStatus.UNCONFIRMED, CycleStatus.FAILED_UNEXPECTED)


@dataclass
class CycleOutcome:
    status: CycleStatus
    step: CycleStep
    state: Optional[GameState] = None
    prediction: Optional[Prediction] = None
    analysis: Optional[MoveAnalysis] = None
    signature: Optional[str] = None
    error: Optional[BaseException] = None


@dataclass
class AgentStats:
    cycles: int = 0
    wins_seen: int = 0
    claims_confirmed: int = 0
    fetch_failures: int = 0
    parse_failures: int = 0
    submission_failures: int = 0
    claims_expired: int = 0
    # signature -> rechecks done so far
    pending_claims: dict = field(default_factory=dict)

    def record(self, outcome: CycleOutcome):
        self.cycles += 1
        status = outcome.status
        if status in (CycleStatus.WON, CycleStatus.SIMULATED_WIN,
                      CycleStatus.FAILED_SUBMISSION, CycleStatus.UNCONFIRMED):
            self.wins_seen += 1
        if status == CycleStatus.WON:
            self.claims_confirmed += 1
        elif status == CycleStatus.FAILED_FETCH:
            self.fetch_failures += 1
        elif status in (CycleStatus.FAILED_PARSE, CycleStatus.ABORTED_NO_ROLL):
            self.parse_failures += 1
        elif status in (CycleStatus.FAILED_SUBMISSION, CycleStatus.UNCONFIRMED):
            self.submission_failures += 1
        if status == CycleStatus.UNCONFIRMED and outcome.signature:
            self.pending_claims.setdefault(outcome.signature, 0)


class GameOrchestrator:
    """
    The polling agent.

    One cycle at a time, in order: state, prediction, evaluation, and a
    submission only when the roll wins. In simulation mode the win is
    reported but nothing is sent.
    """

    BANNER = r"""
  ____              _        ____        _
 / ___| _ __   __ _| | _____/ ___| _ __ (_)_ __   ___ _ __
 \___ \| '_ \ / _` | |/ / _ \___ \| '_ \| | '_ \ / _ \ '__|
  ___) | | | | (_| |   <  __/___) | | | | | |_) |  __/ |
 |____/|_| |_|\__,_|_|\_\___|____/|_| |_|_| .__/ \___|_|
                                          |_|
              Land on the ladder. Claim the pot.
    """

    def __init__(self, config: AgentConfig, account: str,
                 api: Optional[SnakesAPIClient] = None,
                 finalizer=None,
                 live_mode: bool = False,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.account = account
        self.live_mode = live_mode
        self.running = False
        self.sleep = sleep

        self.api = api or SnakesAPIClient(config)
        self.evaluator = MoveEvaluator(config.winning_positions)
        self.finalizer = finalizer
        self.fetch_policy = RetryPolicy(
            attempts=config.timing.fetch_attempts,
            delay=config.timing.fetch_retry_delay,
        )
        self.poll_interval = config.timing.poll_interval
        self.cooldown = config.timing.cooldown
        self.max_claim_rechecks = config.timing.max_claim_rechecks
        self.stats = AgentStats()

        if live_mode and finalizer is None:
            raise ValueError("Live mode needs a TransactionFinalizer")

    def start(self):
        """Start polling. Only returns on a shutdown signal."""
        console.print(self.BANNER, style="bold green")

        mode_text = "[bold red]LIVE MODE[/bold red]" if self.live_mode else "[bold yellow]SIMULATION MODE[/bold yellow]"
        console.print(Panel(
            f"Mode: {mode_text}\n"
            f"Account: [cyan]{self.account}[/cyan]\n"
            f"Game: {self.config.game.game_url}\n"
            f"Winning squares: [green]{sorted(self.config.winning_positions)}[/green]\n"
            f"Poll interval: {self.poll_interval:.0f}s | Cool-down: {self.cooldown:.0f}s\n"
            f"Fetch retries: {self.fetch_policy.attempts} x {self.fetch_policy.delay:.0f}s",
            title=f"[bold]SnakeSniper v{__version__}[/bold]",
        ))

        signal.signal(signal.SIGINT, self._shutdown_handler)
        signal.signal(signal.SIGTERM, self._shutdown_handler)

        self.running = True
        self._main_loop()

    def _main_loop(self):
        while self.running:
            console.rule(f"[bold cyan]Cycle #{self.stats.cycles + 1}[/bold cyan] - "
                         f"{datetime.now().strftime('%H:%M:%S')}")
            try:
                self._recheck_pending()
                outcome = self.run_cycle()
            except KeyboardInterrupt:
                break

            self._report(outcome)
            self.stats.record(outcome)
            self._display_status()

            if not self.running:
                break

            if outcome.status.is_failure:
                console.print(f"[dim]Cooling down for {self.cooldown:.0f}s...[/dim]\n")
                self.sleep(self.cooldown)
            else:
                console.print(f"[dim]Next poll in {self.poll_interval:.0f}s...[/dim]\n")
                self.sleep(self.poll_interval)

        self._shutdown()

    def run_cycle(self) -> CycleOutcome:
        """One pass of state -> prediction -> evaluate -> (submit)."""
        step = CycleStep.FETCHING_STATE
        state = prediction = analysis = None
        try:
            state = decode_state(self._fetch(step, self.api.fetch_state))

            step = CycleStep.FETCHING_PREDICTION
            prediction = Prediction.from_payload(
                self._fetch(step, lambda: self.api.fetch_prediction(self.account))
            )
            if not prediction.rolled_number:
                raise MissingRollError("No usable 'rolled a N' in prediction message",
                                       step=step.value, payload=prediction.message)

            step = CycleStep.EVALUATING
            analysis = self.evaluator.evaluate(state, prediction.rolled_number)

            if not analysis.is_winning_move:
                return CycleOutcome(CycleStatus.IDLE, CycleStep.IDLE, state, prediction, analysis)

            step = CycleStep.SUBMITTING
            if not self.live_mode:
                return CycleOutcome(CycleStatus.SIMULATED_WIN, step, state, prediction, analysis)

            result = self.finalizer.finalize(prediction.transaction)
            return CycleOutcome(CycleStatus.WON, step, state, prediction, analysis,
                                signature=result.signature)

        except FetchError as e:
            return CycleOutcome(CycleStatus.FAILED_FETCH, step, state, prediction, analysis, error=e)
        except MissingRollError as e:
            return CycleOutcome(CycleStatus.ABORTED_NO_ROLL, step, state, prediction, analysis, error=e)
        except PayloadError as e:
            return CycleOutcome(CycleStatus.FAILED_PARSE, step, state, prediction, analysis, error=e)
        except ConfirmationTimeoutError as e:
            return CycleOutcome(CycleStatus.UNCONFIRMED, step, state, prediction, analysis,
                                signature=e.signature, error=e)
        except SubmissionError as e:
            return CycleOutcome(CycleStatus.FAILED_SUBMISSION, step, state, prediction, analysis,
                                signature=getattr(e, "signature", None), error=e)
        except Exception as e:
            return CycleOutcome(CycleStatus.FAILED_UNEXPECTED, step, state, prediction, analysis, error=e)

    def _fetch(self, step: CycleStep, call) -> dict:
        result = call_with_retry(
            call,
            self.fetch_policy,
            retry_on=(FetchError,),
            sleep=self.sleep,
            on_retry=lambda attempt, e: console.print(
                f"  [yellow]{step.value} attempt {attempt}/{self.fetch_policy.attempts} "
                f"failed: {escape(str(e))}[/yellow]"
            ),
        )
        if not result.ok:
            error = result.error
            raise FetchError(
                f"{step.value} gave up after {result.attempts} attempts: {error}",
                step=step.value,
                payload=getattr(error, "payload", None),
                attempts=result.attempts,
            ) from error
        return result.value

    def _recheck_pending(self):
        """Check claims that timed out waiting for confirmation.

        A claim whose blockhash expired never shows up, so after
        max_claim_rechecks lookups without a landing it is dropped as expired.
        """
        if not self.stats.pending_claims or self.finalizer is None:
            return

        for signature, rechecks in list(self.stats.pending_claims.items()):
            rechecks += 1
            try:
                status = self.finalizer.signature_status(signature)
            except SubmissionError as e:
                console.print(f"[red]Earlier claim {signature[:16]}... failed on chain: {escape(str(e))}[/red]")
                del self.stats.pending_claims[signature]
                continue
            except Exception as e:
                console.print(f"[yellow]Could not check claim {signature[:16]}...: {escape(str(e))}[/yellow]")
                status = None

            if status in ("confirmed", "finalized"):
                console.print(f"[bold green]Earlier claim {signature[:16]}... landed ({status})[/bold green]")
                self.stats.claims_confirmed += 1
                del self.stats.pending_claims[signature]
            elif rechecks >= self.max_claim_rechecks:
                console.print(f"[red]Earlier claim {signature[:16]}... expired after "
                              f"{rechecks} checks, did not land[/red]")
                self.stats.claims_expired += 1
                del self.stats.pending_claims[signature]
            else:
                console.print(f"[yellow]Earlier claim {signature[:16]}... still {status or 'unknown'} "
                              f"(check {rechecks}/{self.max_claim_rechecks})[/yellow]")
                self.stats.pending_claims[signature] = rechecks

    def _report(self, outcome: CycleOutcome):
        if outcome.state is not None:
            positions = ", ".join(f"{c.value}={p}" for c, p in outcome.state.positions.items())
            console.print(f"  Board: {positions} | turn: [bold]{outcome.state.active_color.value}[/bold]")
        if outcome.prediction is not None and outcome.prediction.rolled_number is not None:
            console.print(f"  Rolled: {outcome.prediction.rolled_number}")
        if outcome.analysis is not None:
            console.print(f"  Move: {outcome.analysis.summary()}")

        status = outcome.status
        if status == CycleStatus.IDLE:
            console.print("[dim]Not a winning square. Skipping.[/dim]")
        elif status == CycleStatus.SIMULATED_WIN:
            console.print("[bold yellow]WINNING MOVE (simulation, nothing sent)[/bold yellow]")
        elif status == CycleStatus.WON:
            console.print(f"[bold green]CLAIMED! Signature: {outcome.signature}[/bold green]")
            if outcome.prediction and outcome.prediction.next_href:
                console.print(f"  [dim]Next: {outcome.prediction.next_href}[/dim]")
        elif status == CycleStatus.UNCONFIRMED:
            console.print(f"[bold magenta]Winnable round, claim UNCONFIRMED "
                          f"({outcome.signature}). Will re-check next cycle.[/bold magenta]")
        elif status == CycleStatus.FAILED_SUBMISSION:
            console.print(f"[bold red]LOST A WINNABLE ROUND[/bold red] {_describe(outcome.error)}")
        elif status in (CycleStatus.FAILED_PARSE, CycleStatus.ABORTED_NO_ROLL):
            console.print(f"[yellow]Data unreadable at {outcome.step.value}:[/yellow] {_describe(outcome.error)}")
        elif status == CycleStatus.FAILED_FETCH:
            console.print(f"[red]Game service unreachable at {outcome.step.value}:[/red] {_describe(outcome.error)}")
        else:
            console.print(f"[red]Unexpected error at {outcome.step.value}:[/red] {_describe(outcome.error)}")

    def _display_status(self):
        table = Table(title="Agent Status", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Cycles", str(self.stats.cycles))
        table.add_row("Winning rolls seen", str(self.stats.wins_seen))
        table.add_row("Claims confirmed", str(self.stats.claims_confirmed))
        table.add_row("Fetch failures", str(self.stats.fetch_failures))
        table.add_row("Unreadable payloads", str(self.stats.parse_failures))
        table.add_row("Submission failures", str(self.stats.submission_failures))
        table.add_row("Claims expired", str(self.stats.claims_expired))
        table.add_row("Pending claims", str(len(self.stats.pending_claims)))

        console.print(table)

    def _shutdown_handler(self, signum, frame):
        console.print("\n[yellow]Shutdown signal received...[/yellow]")
        self.running = False

    def _shutdown(self):
        console.print("\n[yellow]Shutting down SnakeSniper...[/yellow]")
        if self.stats.pending_claims:
            console.print("[magenta]Unconfirmed claims, check them manually:[/magenta]")
            for signature in self.stats.pending_claims:
                console.print(f"  {signature}")
        console.print(f"[dim]{self.stats.cycles} cycles, "
                      f"{self.stats.claims_confirmed} claims confirmed.[/dim]")


def _describe(error) -> str:
    if isinstance(error, SnakeSniperError):
        return escape(error.describe())
    return escape(f"{type(error).__name__}: {error}")
