import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich import print as rprint
from rich.console import Console
from rich.text import Text

from .config import ConfigError, ParrotConfig, find_config, load_config, write_sample_config
from .llm.bounded import DEFAULT_DEADLINE_SECONDS
from .llm.manager import LLMManager
from .prompts import detect_command_type
from .responder import respond
from .ui.colors import format_parrot_output

app = typer.Typer(help="Parrot: a sassy CLI that mocks your failed commands")

DEFAULT_CONFIG_PATH = Path("~/.config/parrot/config.yaml")

DEMO_COMMANDS = [
    ("git push origin main", "1"),
    ("npm install express", "1"),
    ("docker run myapp", "125"),
    ("curl https://api.example.com", "7"),
]

DEMO_RESPONSES = {
    "mild": {
        "git": "Git command failed. Maybe check your remote branch?",
        "nodejs": "NPM seems unhappy. Try clearing your cache?",
        "docker": "Container seems upset. Check your Dockerfile?",
        "http": "Request didn't go through. Check the URL?",
        "generic": "Command didn't work as expected. Check the syntax?",
    },
    "sarcastic": {
        "git": "Another git genius who forgot to pull first. Classic.",
        "nodejs": "NPM install failed? Shocking! Nobody saw that coming.",
        "docker": "Docker container more like docker DISASTER!",
        "http": "404: Competence not found.",
        "generic": "Wow, you managed to break something simple. Impressive!",
    },
    "savage": {
        "git": "Git rejected your code harder than everyone rejects you.",
        "nodejs": "NPM refuses to install anything for someone this incompetent.",
        "docker": "Your containers crash faster than your career prospects.",
        "http": "The internet collectively rejected you. Impressive.",
        "generic": "Your command failed harder than you failed at life.",
    },
}


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _load(config_path: Optional[str]) -> tuple[ParrotConfig, Optional[Path]]:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        rprint(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(1)


def _mark(flag: bool) -> str:
    return "[green]✅[/green]" if flag else "[red]❌[/red]"


@app.command()
def mock(
    command: str = typer.Argument(..., help="The command line that failed"),
    exit_code: str = typer.Argument(..., help="Its exit status"),
    config_path: Optional[str] = typer.Option(None, "--config-path", help="Path to parrot config file"),
    debug: bool = typer.Option(False, "--debug", help="Trace which backend answered"),
    deadline: float = typer.Option(DEFAULT_DEADLINE_SECONDS, "--deadline", help="Seconds to wait before falling back"),
):
    """Mock a failed command (called by the shell hook)."""
    config: ParrotConfig
    try:
        config, _ = load_config(config_path)
    except ConfigError as exc:
        logging.getLogger(__name__).warning("%s; using canned responses", exc)
        config = ParrotConfig().with_general(fallback_only=True)
    if debug:
        config = config.with_general(debug=True)
    _setup_logging(config.general.debug)

    line = respond(command, exit_code, config=config, deadline=deadline, stream=sys.stdout)
    sys.stdout.write("\r")
    Console(no_color=not config.general.colors, highlight=False).print(line)


@app.command()
def status(config_path: Optional[str] = typer.Option(None, "--config-path", help="Path to parrot config file")):
    """Show configuration and backend availability."""
    cfg, source = _load(config_path)
    _setup_logging(cfg.general.debug)
    rprint("🦜 [bold]Parrot Status Report[/bold]")

    rprint("\n📁 Configuration:")
    if source:
        rprint(f"   ✅ Loaded from: {source}")
    else:
        rprint("   ℹ️  Using default configuration (no config file found)")
    rprint(f"   • Personality: {cfg.general.personality}")
    rprint(f"   • Debug mode: {cfg.general.debug}")
    rprint(f"   • Fallback only: {cfg.general.fallback_only}")

    info = LLMManager(cfg).status()

    rprint("\n🌐 API Backend:")
    if info["api_enabled"]:
        rprint(f"   • Enabled: {_mark(True)}")
        rprint(f"   • Provider: {info['api_provider']}")
        rprint(f"   • Model: {info['api_model']}")
        if info["api_available"]:
            rprint(f"   • Status: {_mark(True)} Available")
        else:
            rprint(f"   • Status: {_mark(False)} Unavailable (check API key/endpoint)")
    else:
        rprint(f"   • Enabled: {_mark(False)}")

    rprint("\n🖥️  Local Backend:")
    if info["local_enabled"]:
        rprint(f"   • Enabled: {_mark(True)}")
        rprint(f"   • Provider: {info['local_provider']}")
        rprint(f"   • Model: {info['local_model']}")
        if info["local_available"]:
            rprint(f"   • Status: {_mark(True)} Available")
        else:
            rprint(f"   • Status: {_mark(False)} Unavailable (check if Ollama is running)")
    else:
        rprint(f"   • Enabled: {_mark(False)}")

    rprint("\n🔄 Fallback Backend:")
    rprint(f"   • Status: {_mark(True)} Always available")

    rprint("\n⚡ Backend Priority:")
    if cfg.general.fallback_only:
        rprint("   1. Fallback (forced)")
        return
    priority = 1
    for label, enabled, available in (
        ("API", info["api_enabled"], info["api_available"]),
        ("Local", info["local_enabled"], info["local_available"]),
    ):
        if enabled:
            rprint(f"   {priority}. {label} ({'ready' if available else 'unavailable'})")
            priority += 1
    rprint(f"   {priority}. Fallback (always)")

    if not cfg.api.api_key:
        rprint('\n💡 Set an API key: export PARROT_API_KEY="your-key-here"')
    if info["local_enabled"] and not info["local_available"]:
        rprint(f"💡 Install the model: ollama pull {info['local_model']}")


@app.command()
def demo(personality: Optional[str] = typer.Option(None, "--personality", "-p", help="Only show one personality")):
    """Show personality and colour samples without calling any backend."""
    console = Console(highlight=False)
    names = [personality] if personality else list(DEMO_RESPONSES)
    for name in names:
        if name not in DEMO_RESPONSES:
            rprint(f"[red]Unknown personality:[/red] {name}")
            raise typer.Exit(1)
        console.print(f"🎭 [bold]{name}[/bold] personality")
        for command, exit_code in DEMO_COMMANDS:
            category = detect_command_type(command)
            response = DEMO_RESPONSES[name].get(category, DEMO_RESPONSES[name]["generic"])
            console.print(f"Command: {command} (exit {exit_code})")
            console.print(Text.assemble("  Simple:   ", format_parrot_output(name, response)))
            console.print(Text.assemble("  Enhanced: ", format_parrot_output(name, response, enhanced=True)))
        console.print()


@app.command("config")
def config_cmd(
    path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--path", help="Where to write the sample config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    show: bool = typer.Option(False, "--show", help="Print the effective configuration instead"),
):
    """Create a sample config file or show the effective configuration."""
    if show:
        cfg, source = _load(None)
        rprint(f"# source: {source or 'defaults'}")
        dumped = cfg.dump()
        if dumped.get("api", {}).get("api_key"):
            dumped["api"]["api_key"] = "***"
        typer.echo(yaml.safe_dump(dumped, sort_keys=False))
        return
    try:
        target = write_sample_config(path, force=force)
    except ConfigError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    rprint(f"[green]Sample config written to[/green] {target}")
    existing = find_config()
    if existing and existing.resolve() != target.resolve():
        rprint(f"[yellow]Note:[/yellow] {existing} takes precedence over this file")


if __name__ == "__main__":
    app()
