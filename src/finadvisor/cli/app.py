"""Main CLI application using Typer."""
import asyncio
from dataclasses import dataclass

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..assistant import ConversationOrchestrator, SessionUIState, SideEffectCoordinator
from ..config import ALL_PERIODS
from ..finance import ExpenseIndex, FinanceState, FinanceToolkit, InMemoryFinanceRepository
from ..finance.periods import is_all, parse_period
from ..llm import ChatService
from ..memory import ChatSession, ConversationStore, SessionWriter
from .providers import (
    configure_logging,
    default_currency,
    get_expense_index,
    get_store,
    require_chat_service,
)
from .render import render_message, render_notification

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="finadvisor",
    help="Conversational personal-finance assistant backed by Gemini function calling",
    no_args_is_help=True,
    add_completion=True,
)

console = Console()

_HELP = (
    "[dim]Commands: /clear (wipe history), /refresh (reload data), "
    "/period YYYY-MM|all (change period), /quit[/dim]"
)


@dataclass
class _Runtime:
    store: ConversationStore
    service: ChatService
    finance: FinanceState
    ui: SessionUIState
    writer: SessionWriter
    coordinator: SideEffectCoordinator
    orchestrator: ConversationOrchestrator
    index: ExpenseIndex | None = None


def _validate_period(period: str) -> str:
    if is_all(period):
        return ALL_PERIODS
    parse_period(period)
    return period


async def _start(user: str, period: str) -> _Runtime:
    configure_logging()
    repository = InMemoryFinanceRepository(default_currency=default_currency())
    index = get_expense_index(console)
    service = require_chat_service(FinanceToolkit(repository, index=index), console)

    store = get_store()
    await store.connect()

    finance = FinanceState(repository, user)
    ui = SessionUIState(period)
    writer = SessionWriter(store)
    coordinator = SideEffectCoordinator(finance, ui)
    orchestrator = ConversationOrchestrator(service, writer, coordinator, ui)
    return _Runtime(store, service, finance, ui, writer, coordinator, orchestrator, index)


async def _stop(runtime: _Runtime, session: ChatSession | None) -> None:
    try:
        if session is not None:
            await runtime.orchestrator.close_session(session)
        await runtime.writer.flush()
    finally:
        await runtime.service.close()
        if runtime.index is not None:
            await runtime.index.close()
        await runtime.store.disconnect()


async def _load_finances(runtime: _Runtime) -> None:
    """Reload every collection and re-index the loaded expenses for search."""
    await runtime.finance.refresh_all()
    if runtime.index is None:
        return
    try:
        await runtime.index.rebuild(runtime.finance.user_id, runtime.finance.expenses)
    except Exception as e:
        console.print(f"[yellow]Semantic search unavailable: {e}[/yellow]")


async def _send(runtime: _Runtime, session: ChatSession, text: str) -> None:
    with console.status("[dim]Thinking...[/dim]"):
        result = await runtime.orchestrator.send(text, session)
    if not result.accepted:
        return

    reply = session.last_message
    if reply is not None and reply.sender == "assistant":
        console.print(render_message(reply))
    if result.notification is not None:
        console.print(render_notification(result.notification))
        if runtime.ui.period_changes:
            console.print(f"[dim]Period: {runtime.ui.selected_period}[/dim]")


@app.command()
def chat(
    user: str = typer.Option(
        "local",
        "--user",
        "-u",
        help="User id whose conversation is loaded"
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Display name used in the greeting"
    ),
    period: str = typer.Option(
        ALL_PERIODS,
        "--period",
        "-p",
        help="Selected period (YYYY-MM or 'all')"
    ),
):
    """Start an interactive chat session with the finance assistant."""
    try:
        period = _validate_period(period)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    async def _chat():
        runtime = await _start(user, period)
        session: ChatSession | None = None
        try:
            session = await runtime.orchestrator.open_session(user, name)
            await _load_finances(runtime)

            console.print(f"[bold cyan]Finance assistant[/bold cyan] [dim](period: {period})[/dim]")
            console.print(_HELP)
            for message in session.messages:
                console.print(render_message(message))

            while True:
                try:
                    text = await asyncio.to_thread(console.input, "[bold blue]You:[/bold blue] ")
                except (EOFError, KeyboardInterrupt):
                    break

                command = text.strip()
                if not command:
                    continue
                if command in ("/quit", "/exit"):
                    break
                if command == "/clear":
                    session = await runtime.orchestrator.clear_history(session)
                    console.print("[yellow]Conversation cleared.[/yellow]")
                    console.print(render_message(session.messages[0]))
                    continue
                if command == "/refresh":
                    await _load_finances(runtime)
                    console.print(
                        f"[dim]Loaded {len(runtime.finance.expenses)} expenses, "
                        f"{len(runtime.finance.budgets)} budgets[/dim]"
                    )
                    continue
                if command.startswith("/period"):
                    try:
                        runtime.ui.change_period(_validate_period(command.removeprefix("/period").strip()))
                    except ValueError as e:
                        console.print(f"[red]Error: {e}[/red]")
                    else:
                        console.print(f"[dim]Period: {runtime.ui.selected_period}[/dim]")
                    continue

                await _send(runtime, session, command)
        finally:
            await _stop(runtime, session)

    asyncio.run(_chat())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Message to send"),
    user: str = typer.Option("local", "--user", "-u", help="User id"),
    period: str = typer.Option(ALL_PERIODS, "--period", "-p", help="Selected period (YYYY-MM or 'all')"),
):
    """Send a single message and print the reply."""
    try:
        period = _validate_period(period)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    async def _ask():
        runtime = await _start(user, period)
        session: ChatSession | None = None
        try:
            session = await runtime.orchestrator.open_session(user)
            await _load_finances(runtime)
            await _send(runtime, session, question)
        finally:
            await _stop(runtime, session)

    asyncio.run(_ask())


@app.command()
def history(
    user: str = typer.Option("local", "--user", "-u", help="User id"),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of most recent messages to show"),
):
    """Show the stored transcript of a user."""
    async def _history():
        configure_logging()
        store = get_store()
        try:
            await store.connect()
            session = await store.load(user)

            table = Table(title=f"Conversation of {user}", show_header=True, header_style="bold cyan")
            table.add_column("Time", style="dim")
            table.add_column("From", style="cyan")
            table.add_column("Message")
            table.add_column("Action", style="green")
            for message in session.messages[-limit:]:
                table.add_row(
                    message.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
                    message.sender,
                    message.text,
                    message.function_called or "",
                )
            console.print(table)
            console.print(f"[dim]{len(session.context)} context turns stored ({store.backend_type})[/dim]")

        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_history())


@app.command()
def clear(
    user: str = typer.Option("local", "--user", "-u", help="User id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Delete the stored transcript and context of a user."""
    if not yes:
        confirm = typer.confirm(f"Delete the conversation history of '{user}'?")
        if not confirm:
            console.print("[dim]Aborted.[/dim]")
            return

    async def _clear():
        configure_logging()
        store = get_store()
        try:
            await store.connect()
            await store.clear(user)
            console.print("[green]Conversation history cleared.[/green]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_clear())


if __name__ == "__main__":
    app()
