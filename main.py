"""
Main application entry point for the executive assistant.
Serves the A2A webhook or runs an interactive Rich console against the same pipeline.
"""

import asyncio
from typing import Optional
import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt
from rich.markdown import Markdown
from rich.text import Text
from rich.align import Align
from rich import box

from executive_assistant.server import A2A_PATH, create_app
from executive_assistant.system import ExecutiveAssistantSystem

# Initialize Rich console and Typer app
console = Console()
app = typer.Typer(
    name="execumate",
    help="📅 ExecuMate executive assistant: calendar, email and tasks through one agent",
    add_completion=False,
    rich_markup_mode="rich"
)

ConfigOption = typer.Option("config.yaml", "--config", "-c", help="Path to configuration file")


def create_header(name: str) -> Panel:
    """Create the application header."""
    header_text = Text.assemble(
        ("📅 ", "bold blue"),
        (f"{name} Executive Assistant", "bold white"),
        ("\nCalendar • Email • Tasks", "dim white")
    )
    return Panel(Align.center(header_text), box=box.DOUBLE, border_style="cyan", padding=(1, 2))


def create_welcome_message() -> Panel:
    """Create a welcome message panel."""
    welcome_md = """
## Welcome! 👋

Ask me to manage your **calendar**, **email** and **tasks**.

### Available Commands:
- `info` - Display system information
- `quit`, `exit`, `bye` - Exit the application

### Example Requests:
- *What's on my calendar today?*
- *How many unread emails do I have?*
- *Add tasks: book flights, prepare slides and call the bank, all high priority*
- *Show my pending tasks*
"""
    return Panel(Markdown(welcome_md), title="[bold cyan]Getting Started[/bold cyan]", border_style="green")


def show_system_info(system: ExecutiveAssistantSystem) -> None:
    """Display system information."""
    info = system.get_system_info()

    table = Table(title="🔧 System Configuration", box=box.ROUNDED)
    table.add_column("Property", style="cyan", width=20)
    table.add_column("Value", style="white")

    table.add_row("Model", f"[green]{info['config']['model']}[/green]")
    table.add_row("Region", f"[yellow]{info['config']['region']}[/yellow]")
    table.add_row("Agent Timeout", f"[blue]{info['agent']['timeout_seconds']}s[/blue]")
    table.add_row("Google Credentials", "[green]✅ Configured[/green]" if info["google_credentials"] else "[red]❌ Missing[/red]")
    table.add_row("Tasks Stored", str(info["tasks_stored"]))
    table.add_row("Log File", ", ".join(info["logging"]["log_files"]))

    tools_table = Table(title="🛠️ Available Tools", box=box.ROUNDED)
    tools_table.add_column("Tool", style="yellow")
    tools_table.add_column("Status", style="green")
    tools_table.add_column("Actions", style="white")

    for tool_name, tool_info in info["tools"].items():
        status = "✅ Enabled" if tool_info["enabled"] else "[red]Disabled[/red]"
        tools_table.add_row(tool_name.title(), status, ", ".join(tool_info["actions"]))

    console.print(table)
    console.print()
    console.print(tools_table)


def format_agent_response(result: dict) -> None:
    """Display an assistant response and its tool results."""
    metadata = result.get("metadata", {})

    if metadata.get("error"):
        console.print(Panel(
            f"{result['content']}\n\n[red]Error: {metadata['error']}[/red]",
            title="[bold red]❌ Error[/bold red]",
            border_style="red",
            padding=(1, 2)
        ))
        return

    console.print(Panel(result["content"], title="[bold green]✅ Response[/bold green]", border_style="green", padding=(1, 2)))

    tool_results = metadata.get("toolResults") or []
    if tool_results:
        results_table = Table(title="📊 Tool Calls", box=box.SIMPLE)
        results_table.add_column("Tool", style="cyan")
        results_table.add_column("Outcome", style="white")

        for tool_name, tool_result in zip(metadata.get("toolsUsed", []), tool_results):
            if tool_result["success"]:
                outcome = f"[green]✅ {tool_result.get('message', 'Done')}[/green]"
            else:
                outcome = f"[red]❌ {tool_result.get('error', 'Failed')}[/red]"
            results_table.add_row(tool_name, outcome)

        console.print()
        console.print(results_table)


async def interactive_mode(system: ExecutiveAssistantSystem, user_id: Optional[str]) -> None:
    """Run the interactive console."""
    console.clear()
    console.print(create_header(system.config.agent.name))
    console.print()
    console.print(create_welcome_message())

    while True:
        try:
            user_input = Prompt.ask("\n[bold cyan]💬 Your request[/bold cyan]", default="", show_default=False).strip()

            if not user_input:
                console.print("[yellow]⚠️ Please enter a request or command.[/yellow]")
                continue

            if user_input.lower() in ['quit', 'exit', 'bye']:
                console.print(Panel("[bold green]👋 Goodbye![/bold green]", border_style="green"))
                break

            if user_input.lower() == 'info':
                show_system_info(system)
                continue

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True
            ) as progress:
                task = progress.add_task("🔄 Working on it...", total=None)
                result = await system.process_text(user_input, user_id=user_id)
                progress.update(task, completed=True)

            console.print()
            format_agent_response(result)

        except KeyboardInterrupt:
            console.print(Panel("[bold green]👋 Goodbye![/bold green]", border_style="green"))
            break


def load_system(config: str, console_logging: bool = True) -> ExecutiveAssistantSystem:
    """Create the system or exit with a readable error."""
    try:
        return ExecutiveAssistantSystem(config, console_logging=console_logging)
    except Exception as e:
        console.print(Panel(f"[red]❌ Failed to start: {str(e)}[/red]", title="[bold red]Startup Error[/bold red]", border_style="red"))
        raise typer.Exit(code=1)


@app.command()
def serve(
    config: str = ConfigOption,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to server.host)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (defaults to server.port)"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Override logging.level for this run")
):
    """Serve the A2A webhook, health and info endpoints."""
    system = load_system(config)
    if log_level:
        system.logging_manager.set_level(log_level)
    bind_host = host or system.config.server.host
    bind_port = port or system.config.server.port

    console.print(create_header(system.config.agent.name))
    console.print(f"📡 A2A endpoint: http://{bind_host}:{bind_port}{A2A_PATH}")
    console.print(f"💚 Health check: http://{bind_host}:{bind_port}/health")

    uvicorn.run(create_app(system), host=bind_host, port=bind_port, log_level=(log_level or system.config.logging.level).lower())


@app.command()
def chat(
    config: str = ConfigOption,
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="User id attached to each request")
):
    """Chat with the assistant in the terminal."""
    system = load_system(config, console_logging=False)
    asyncio.run(interactive_mode(system, user_id))


@app.command()
def info(config: str = ConfigOption):
    """Show configuration and tool status."""
    system = load_system(config, console_logging=False)
    show_system_info(system)


if __name__ == "__main__":
    app()
