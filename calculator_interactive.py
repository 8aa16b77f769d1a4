# calculator_interactive.py - Interactive BFV Encrypted Calculator with UI

import logging
import sys
from dataclasses import dataclass
from enum import Enum

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from he_errors import ConfigError, OpError
from he_params import DEFAULT_PROFILE, ParameterProfile, build, initialize_runtime
from he_reducer import reduce, reduce_all
from he_report import CompressionMode, format_blob, report
from he_session import Operation, derive

console = Console()
logger = logging.getLogger(__name__)

MENU = [
    ("add", "➕ Homomorphic Add"),
    ("sub", "➖ Homomorphic Subtraction"),
    ("multiply", "✖️  Homomorphic Multiply"),
    ("all", "🔁 All three operations"),
    ("exit", "🚪 Exit"),
]
RUN_ALL = "all"
EXIT = "exit"


@dataclass(frozen=True)
class RunConfig:
    display_encrypted_blobs: bool = True
    parameter_profile: ParameterProfile = DEFAULT_PROFILE
    compression: CompressionMode = CompressionMode.ZLIB
    blob_preview_chars: int = 64
    log_level: str = "WARNING"


class State(Enum):
    PROMPTING = "prompting"
    COMPUTING = "computing"
    REPORTING = "reporting"
    ASK_CONTINUE = "ask_continue"
    TERMINATED = "terminated"


def setup_logging(level="WARNING", target=None):
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=target or console, show_path=False)],
    )


def show_banner(target=None):
    """Display welcome banner"""
    banner = """
[bold cyan]╔═══════════════════════════════════════════════════════════╗
║                                                           ║
║        🔐 BFV HOMOMORPHIC ENCRYPTED CALCULATOR 🔐          ║
║                                                           ║
║  🔒 Inputs encrypted independently (TenSEAL / SEAL)       ║
║  🧮 Add, subtract, multiply without decrypting            ║
║                                                           ║
╚═══════════════════════════════════════════════════════════╝[/bold cyan]
"""
    (target or console).print(banner)


def show_menu(target=None):
    """Display operation menu"""
    table = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    table.add_column("Option", style="cyan bold")
    table.add_column("Description", style="white")

    for key, label in MENU:
        table.add_row(key, label)

    target = target or console
    target.print()
    target.print(table)


class InteractionLoop:
    """Prompting -> Computing -> Reporting -> AskContinue, until the user stops"""

    def __init__(self, config=None, ui=None):
        self.config = config or RunConfig()
        self.console = ui or console
        self.state = State.PROMPTING
        self.choice = None
        self.values = []
        self.session = None
        self.results = {}

    def run(self):
        """Returns the exit status. ConfigError propagates (fatal)."""
        with self.console.status("[cyan]Initializing homomorphic encryption runtime...", spinner="dots"):
            initialize_runtime()

        handlers = {
            State.PROMPTING: self.prompt,
            State.COMPUTING: self.compute,
            State.REPORTING: self.present,
            State.ASK_CONTINUE: self.ask_continue,
        }
        while self.state is not State.TERMINATED:
            self.state = handlers[self.state]()
        self.console.print("\n[bold cyan]Goodbye! 🔒[/bold cyan]\n")
        return 0

    def prompt(self):
        show_menu(self.console)
        try:
            choice = Prompt.ask("[bold cyan]Choose an operation[/bold cyan]", console=self.console)
            choice = choice.strip().lower()
            if choice not in dict(MENU) or choice == EXIT:
                return State.TERMINATED

            count = IntPrompt.ask("[cyan]Enter the number of inputs[/cyan]", default=2, console=self.console)
            while count < 1:
                self.console.print("[red]At least one input is required[/red]")
                count = IntPrompt.ask("[cyan]Enter the number of inputs[/cyan]", default=2, console=self.console)

            values = [
                IntPrompt.ask(f"[cyan]Enter input {i}[/cyan]", console=self.console)
                for i in range(1, count + 1)
            ]
        except (KeyboardInterrupt, EOFError):
            return State.TERMINATED

        self.choice = choice
        self.values = values
        return State.COMPUTING

    def compute(self):
        self.results = {}
        logger.info("Running %s over %d input(s)", self.choice, len(self.values))
        with self.console.status("[cyan]Encrypting and evaluating...", spinner="dots"):
            # Fresh parameters, keys and tools every run; nothing is cached
            context = build(self.config.parameter_profile)
            session = derive(context)
            try:
                if self.choice == RUN_ALL:
                    results = reduce_all(session, self.values)
                else:
                    op = Operation.parse(self.choice)
                    results = {op: reduce(session, self.values, op)}
            except OpError as e:
                self.console.print(f"✗ {e.message}", style="bold red")
                return State.ASK_CONTINUE

        self.session = session
        self.results = results
        return State.REPORTING

    def present(self):
        inputs = Table(title="Plaintext inputs", box=box.ROUNDED)
        inputs.add_column("#", style="cyan")
        inputs.add_column("Value", style="white", justify="right")
        for i, value in enumerate(self.values, 1):
            inputs.add_row(str(i), str(value))
        self.console.print(inputs)

        compression = self.config.compression if self.config.display_encrypted_blobs else None
        table = Table(title="Decrypted results", box=box.ROUNDED)
        table.add_column("Operation", style="cyan")
        table.add_column("Result", style="green", justify="right")

        blobs = []
        for op, outcome in self.results.items():
            if isinstance(outcome, OpError):
                table.add_row(op.value, f"[red]✗ {outcome.message}[/red]")
                continue
            result = report(self.session, outcome, compression)
            table.add_row(op.value, str(result.value))
            if result.blob is not None:
                blobs.append((op, result.blob))

        for op, blob in blobs:
            self.console.print(Panel(
                format_blob(blob, self.config.blob_preview_chars),
                title=f"Encrypted (Homomorphic {op.value})",
                border_style="dim",
                box=box.ROUNDED,
            ))
        self.console.print(table)

        self.session = None
        self.results = {}
        return State.ASK_CONTINUE

    def ask_continue(self):
        try:
            again = Confirm.ask("[cyan]Run another computation?[/cyan]", default=True, console=self.console)
        except (KeyboardInterrupt, EOFError):
            return State.TERMINATED
        return State.PROMPTING if again else State.TERMINATED


def main(config=None):
    """Main interactive loop. Returns the process exit status."""
    config = config or RunConfig()
    setup_logging(config.log_level)
    show_banner()

    try:
        return InteractionLoop(config).run()
    except ConfigError as e:
        console.print(f"\n[bold red]✗ Configuration error: {e}[/bold red]\n")
        return 1


def run():
    try:
        status = main()
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Session interrupted. Goodbye![/yellow]\n")
        status = 0
    sys.exit(status)


if __name__ == '__main__':
    run()
