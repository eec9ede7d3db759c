"""Provider factory functions for CLI.

Centralizes creation of the conversation store, finance toolkit, chat
service and logging from environment variables.
"""

import logging
import os
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..config import DEFAULT_CURRENCY
from ..finance import ExpenseIndex, FinanceToolkit, create_expense_embedder
from ..llm import ChatService, create_chat_service
from ..memory import ConversationStore, create_conversation_store

_console = Console()

def configure_logging() -> None:
    """Route library logging through Rich.

    Environment variables:
        FINADVISOR_LOG_LEVEL: Log level (default: WARNING)
    """
    level = os.getenv("FINADVISOR_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )

def get_store() -> ConversationStore:
    """Create the conversation store from environment variables.

    Environment variables:
        FINADVISOR_MEMORY_BACKEND: memory, sqlite or file (default: sqlite)
        FINADVISOR_MEMORY_PATH: Database file or directory
            (default: ./finadvisor_chat.db, or ./chat_history for file)
    """
    backend = os.getenv("FINADVISOR_MEMORY_BACKEND", "sqlite").lower()
    path = os.getenv("FINADVISOR_MEMORY_PATH")

    if backend == "sqlite":
        return create_conversation_store("sqlite", path=path or "./finadvisor_chat.db")
    if backend == "file":
        return create_conversation_store("file", base_dir=path or "./chat_history")
    return create_conversation_store(backend)

def get_expense_index(console: Console | None = None) -> ExpenseIndex | None:
    """Create the semantic expense index, or None when not configured.

    Environment variables:
        OPENAI_API_KEY: OpenAI API key (optional)
        OPENAI_EMBEDDING_MODEL: Embedding model (default: text-embedding-3-small)
    """
    con = console or _console
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        con.print("[dim]OPENAI_API_KEY not set, semantic transaction search disabled[/dim]")
        return None
    model = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    return ExpenseIndex(create_expense_embedder("openai", api_key=api_key, model=model))

def require_chat_service(toolkit: FinanceToolkit, console: Console | None = None) -> ChatService:
    """Create the Gemini chat service, exiting if it is not configured.

    Environment variables:
        GEMINI_API_KEY: Gemini API key (required)
        GEMINI_MODEL: Gemini model (default: gemini-2.5-flash)
    """
    con = console or _console
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        con.print("[red]Error: GEMINI_API_KEY not set in environment[/red]")
        raise typer.Exit(code=1)

    config: dict[str, Any] = {"api_key": api_key, "executor": toolkit}
    model = os.getenv("GEMINI_MODEL")
    if model:
        config["model"] = model
    return create_chat_service("gemini", **config)

def default_currency() -> str:
    return os.getenv("FINADVISOR_CURRENCY", DEFAULT_CURRENCY).upper()
