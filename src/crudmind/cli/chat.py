"""Interactive chat REPL command."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from crudmind.agent.builder import build_orchestrator
from crudmind.agent.events import EventType, StreamingEvent
from crudmind.config.loader import load_config
from crudmind.conversation.state import extract_after_rejection, is_confirmation, is_rejection

if TYPE_CHECKING:
    from crudmind.agent.orchestrator import AgentOrchestrator
    from crudmind.config.schema import CrudmindConfig

console = Console()
logger = logging.getLogger(__name__)


def chat_command(config_path: str | None = None, conversation_id: str | None = None) -> None:
    """Start interactive chat session.

    Args:
        config_path: Optional path to config file
        conversation_id: Conversation to resume instead of starting a new one
    """
    path = Path(config_path) if config_path else None
    try:
        config = load_config(path)
    except Exception as e:
        console.print(f"[red]Failed to load config: {e}[/red]")
        return

    console.print(
        Panel.fit(
            f"[bold blue]crudmind chat[/bold blue]\n"
            f"Model: {config.model.name}\n"
            f"Database: {config.database.path}\n"
            f"Type /help for commands, /exit to quit",
            border_style="blue",
        )
    )

    asyncio.run(_async_chat(config, conversation_id or uuid.uuid4().hex))


async def _async_chat(config: CrudmindConfig, conversation_id: str) -> None:
    """Async chat loop.

    Args:
        config: crudmind configuration
        conversation_id: Conversation the session writes to
    """
    orchestrator = build_orchestrator(config)
    # A resumed conversation may still be waiting on a write
    pending = orchestrator.store.get(conversation_id).has_pending_agent_state

    while True:
        try:
            user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

            if not user_input.strip():
                continue

            if user_input.startswith("/"):
                if await _handle_slash_command(user_input, config, orchestrator, conversation_id):
                    break
                if user_input.strip().lower() == "/reset":
                    pending = False
                continue

            if pending:
                if is_confirmation(user_input):
                    pending = await _render(orchestrator.stream_confirm(conversation_id))
                    continue
                if is_rejection(user_input):
                    response = await orchestrator.reject(conversation_id)
                    console.print(f"\n[yellow]{response.message}[/yellow]")
                    pending = False
                    follow_up = extract_after_rejection(user_input)
                    if not follow_up:
                        continue
                    user_input = follow_up

            pending = await _render(orchestrator.stream(conversation_id, user_input))

        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted[/yellow]")
            if Confirm.ask("Exit chat?", default=False):
                break
        except EOFError:
            break
        except Exception as e:
            logger.debug("Chat turn failed", exc_info=True)
            console.print(f"\n[red]Error: {e}[/red]")

    console.print("\n[cyan]Goodbye![/cyan]")


async def _render(events: AsyncIterator[StreamingEvent]) -> bool:
    """Print streamed events.

    Returns:
        True if the run paused for confirmation
    """
    paused = False
    async for event in events:
        data = event.data
        if event.type is EventType.STEP:
            _print_step(data)
        elif event.type is EventType.CONFIRMATION:
            paused = True
            params = json.dumps(data.get("params") or {}, ensure_ascii=False, indent=2)
            description = escape(data.get("description") or "")
            action = escape(str(data.get("action")))
            console.print(
                Panel(
                    f"{description}\n\n[bold]{action}[/bold]\n{escape(params)}",
                    title="[yellow]Confirmation required[/yellow]",
                    border_style="yellow",
                )
            )
            console.print("[dim]Reply yes to execute, or no to cancel.[/dim]")
        elif event.type is EventType.MESSAGE:
            console.print("\n[bold green]crudmind[/bold green]")
            console.print(Markdown(data.get("content") or ""))
        elif event.type is EventType.ERROR:
            console.print(f"\n[red]Error: {escape(str(data.get('message')))}[/red]")
    return paused


def _print_step(data: dict) -> None:
    if data.get("thought"):
        console.print(f"[dim]💭 {escape(data['thought'])}[/dim]")
    if data.get("action"):
        console.print(f"[dim]🔧 {escape(data['action'])}[/dim]")
    if data.get("observation"):
        observation = data["observation"]
        if len(observation) > 300:
            observation = observation[:300] + "..."
        console.print(f"[dim]   {escape(observation)}[/dim]")


async def _handle_slash_command(
    command: str,
    config: CrudmindConfig,
    orchestrator: AgentOrchestrator,
    conversation_id: str,
) -> bool:
    """Handle slash commands.

    Args:
        command: Command string starting with /
        config: Current configuration
        orchestrator: Orchestrator serving the session
        conversation_id: Current conversation

    Returns:
        True if should exit chat loop
    """
    cmd = command.lower().strip()

    if cmd in ("/exit", "/quit", "/q"):
        return True

    elif cmd == "/help":
        console.print("\n[bold]Available commands:[/bold]")
        console.print("  /help      - Show this help")
        console.print("  /exit      - Exit chat")
        console.print("  /clear     - Clear screen")
        console.print("  /reset     - Forget this conversation")
        console.print("  /tables    - List tables the agent can see")
        console.print("  /tools     - List agent tools")
        console.print("  /config    - Show configuration")

    elif cmd == "/clear":
        console.clear()

    elif cmd == "/reset":
        await orchestrator.reset(conversation_id)
        console.print("[cyan]Conversation reset.[/cyan]")

    elif cmd == "/tables":
        console.print("\n[bold]Tables:[/bold]")
        for table in orchestrator.schema.tables:
            actions = ", ".join(action.value for action in table.allowed_actions)
            console.print(f"  • {table.name} [dim]({actions})[/dim]")

    elif cmd == "/tools":
        console.print("\n[bold]Tools:[/bold]")
        for t in orchestrator.tools.all().values():
            confirm_tag = " [yellow]⚠[/yellow]" if t.requires_confirmation else ""
            console.print(f"  • {t.name}{confirm_tag} - {t.description[:60]}")

    elif cmd == "/config":
        console.print("\n[bold]Configuration:[/bold]")
        console.print(f"  Model: {config.model.name}")
        console.print(f"  Backend: {config.inference.backend}")
        console.print(f"  Database: {config.database.path}")
        console.print(f"  Max steps: {config.agent.max_steps}")
        console.print(f"  Locale: {config.agent.locale}")
        console.print(f"  Conversation store: {config.conversation.backend}")

    else:
        console.print(f"[red]Unknown command: {command}[/red]")
        console.print("Type /help for available commands")

    return False
