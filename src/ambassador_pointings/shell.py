"""Menu-driven shell for the Ambassador pointings admin tool."""

from __future__ import annotations

import sys
from typing import IO, Callable, Optional

import httpx
from rich.console import Console
from rich.markup import escape

from .cli import CliError
from .client import PointingsError, build_client
from .config import Config
from .endpoints import (
    ENVIRONMENT_LABELS,
    Environment,
    default_fqdn,
    derive_health_url,
    resolve_environment,
)
from .health import check_health
from .logging import get_logger
from .output import print_data, print_pointings
from .pointings import PointingsClient
from .prompts import Prompter, SelectionError, choose_prompter
from .workflow import EMPTY_RESPONSE_MARKER, UpdateWorkflow

logger = get_logger("ambassador.shell")

BANNER = "== Ambassador Pointings Admin =="

ACTION_LIST = "List services (service + URL)"
ACTION_UPDATE = "Update a service pointing"
ACTION_HEALTH = "Check armor health"
ACTION_ENVIRONMENT = "Change environment / Ambassador FQDN"
ACTION_QUIT = "Quit"

MENU = (ACTION_LIST, ACTION_UPDATE, ACTION_HEALTH, ACTION_ENVIRONMENT, ACTION_QUIT)

_FQDN_PROMPTS = {
    "demo": "Ambassador FQDN:port for DEMO",
    "qa": "Ambassador FQDN:port for QA",
    "custom": "Ambassador FQDN:port (custom)",
}


class PointingsShell:
    """Interactive menu loop.

    The current `Environment` is the only state that survives between menu
    iterations. Every handler receives it and returns the environment to use
    next, or None to leave the loop.
    """

    def __init__(
        self,
        config: Config,
        client: httpx.Client,
        prompter: Prompter,
        console: Console,
    ) -> None:
        self.config = config
        self.client = client
        self.prompter = prompter
        self.console = console
        self.store = PointingsClient(client, config)

        self.commands: dict[str, Callable[[Environment], Optional[Environment]]] = {
            ACTION_LIST: self.do_list,
            ACTION_UPDATE: self.do_update,
            ACTION_HEALTH: self.do_health,
            ACTION_ENVIRONMENT: self.do_environment,
            ACTION_QUIT: self.do_quit,
        }

    def choose_environment(self) -> Optional[Environment]:
        """Ask for an environment label and its Ambassador host."""

        choice = self.prompter.select_one("Select environment", ENVIRONMENT_LABELS)
        if choice is None:
            return None
        fqdn = self.prompter.prompt_text(_FQDN_PROMPTS[choice], default_fqdn(choice, self.config))
        environment = resolve_environment(choice, fqdn, self.config)
        logger.info(
            "Environment selected",
            extra={"environment": environment.label, "base_url": environment.base_url},
        )
        self.show_environment(environment)
        return environment

    def show_environment(self, environment: Environment) -> None:
        self.console.print()
        self.console.print(f"Environment : {escape(environment.label)}", highlight=False)
        self.console.print(f"Ambassador  : {escape(environment.base_url)}", highlight=False)
        self.console.print()

    def do_list(self, environment: Environment) -> Environment:
        self.console.print("Fetching pointings...")
        pointings = self.store.list_pointings(environment.base_url)
        self.console.print()
        print_pointings(self.console, pointings, self.config.output, title="Services")
        return environment

    def do_update(self, environment: Environment) -> Environment:
        workflow = UpdateWorkflow(self.store, self.prompter, self.console, self.config.output)
        workflow.run(environment.base_url)
        return environment

    def do_health(self, environment: Environment) -> Environment:
        self.console.print()
        self.console.print("Health check")
        default = derive_health_url(environment.label, environment.fqdn, self.config)
        url = self.prompter.prompt_text("Armor health URL", default)
        self.console.print(f"GET {escape(url)}", highlight=False)

        result = check_health(self.client, url)
        if not result.ok:
            self.console.print("[red]Request failed:[/]")
            self.console.print(result.raw, markup=False, highlight=False)
            return environment

        self.console.print()
        if not result.is_json:
            self.console.print("[yellow]Response is not JSON. Raw output:[/]")
            self.console.print(result.raw or EMPTY_RESPONSE_MARKER, markup=False, highlight=False)
            return environment
        self.console.print("Raw output:")
        print_data(self.console, result.payload, "yaml" if self.config.output == "yaml" else "json")
        return environment

    def do_environment(self, environment: Environment) -> Environment:
        replacement = self.choose_environment()
        return replacement if replacement is not None else environment

    def do_quit(self, environment: Environment) -> None:
        return None

    def onecmd(self, action: str, environment: Environment) -> Optional[Environment]:
        """Run one menu action. Action-level failures never end the loop."""

        handler = self.commands.get(action)
        if handler is None:
            self.console.print(f"[yellow]Unknown option: {escape(action)}[/]")
            return environment
        try:
            return handler(environment)
        except PointingsError as exc:
            logger.info("Action failed", extra={"action": action, "error": str(exc)})
            self.console.print(f"[red]Error: {escape(str(exc))}[/]")
        except SelectionError as exc:
            self.console.print(f"[red]Error: {escape(str(exc))}[/]")
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Aborted.[/]")
        return environment

    def cmdloop(self, environment: Environment) -> int:
        current: Optional[Environment] = environment
        while current is not None:
            try:
                action = self.prompter.select_one("Choose action", MENU)
            except SelectionError as exc:
                self.console.print(f"[red]Error: {escape(str(exc))}[/]")
                continue
            except EOFError:
                action = None
            if action is None:
                break
            try:
                current = self.onecmd(action, current)
            except EOFError:
                break
            if current is not None:
                self.console.print()
        return 0


def run_shell(
    config: Config,
    console: Optional[Console] = None,
    stdin: Optional[IO[str]] = None,
    client: Optional[httpx.Client] = None,
) -> int:
    """Run the interactive shell until the operator quits. Returns the exit code."""

    console = console or Console(soft_wrap=False)
    prompter = choose_prompter(config, console, stdin if stdin is not None else sys.stdin)
    with client or build_client(config) as http_client:
        shell = PointingsShell(config, http_client, prompter, console)
        console.print(BANNER)
        try:
            environment = shell.choose_environment()
        except SelectionError as exc:
            raise CliError(str(exc)) from exc
        except EOFError:
            environment = None
        if environment is None:
            raise CliError("No environment selected.")
        return shell.cmdloop(environment)
