"""Typer application and console-script entry point for auo.

``auo`` is a single command. Management flags (``--list``, ``--next``,
``--add``, ...) operate on the configuration store and exit. Without one,
every remaining argument is handed unchanged to ``claude``, which runs with
the current profile's settings in its environment::

    auo --list
    auo --use 1
    auo -p "summarise this repo"      # -p is claude's flag, passed through

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It maps :class:`~auo.exceptions.AuoError` to its exit
code and turns Ctrl-C into exit code 130.
"""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Any, Optional

import click
import typer
from typer.core import TyperCommand

from auo import __version__
from auo.config import CONFIG_DIR_ENV
from auo.exceptions import AuoError, InvalidUsageError
from auo.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from auo.launcher import check_claude_code, install_claude_code, run_claude_code
from auo.migration import DEFAULT_PROFILE_NAME
from auo.models import AddConfigParamsV2, ProviderEnv, ProviderV2
from auo.output import (
    OutputFormat,
    OutputManager,
    error,
    info,
    print_data,
    print_table,
    set_output,
    success,
    suggest,
    warning,
)
from auo.store import ConfigStore

CLEAR_MARKER = "-"

# Flags that make auo handle the invocation itself. Without one of them
# every argument, including ones auo also understands, belongs to claude.
MANAGEMENT_FLAGS = frozenset(
    {
        "-h",
        "--help",
        "-v",
        "--version",
        "--next",
        "--list",
        "--add",
        "--edit",
        "--use",
        "--remove",
        "--config-path",
        "--migrate",
        "--reset",
    }
)
_PASSTHROUGH_KEY = "auo.passthrough"


def _is_management_flag(arg: str) -> bool:
    return arg.split("=", 1)[0] in MANAGEMENT_FLAGS


class PassthroughCommand(TyperCommand):
    """Command that parses its own options only when a management flag is given.

    A plain launch such as ``auo --verbose -p hi`` hands the whole argument
    list to claude in its original order. Global options like ``--json`` or
    ``--config-dir`` take effect only next to a management flag.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if not any(_is_management_flag(arg) for arg in args):
            ctx.meta[_PASSTHROUGH_KEY] = list(args)
            args = []
        return super().parse_args(ctx, args)


app = typer.Typer(
    name="auo",
    help="Switch between Claude Code API profiles and run claude with the current one.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"auo {__version__}")
        raise typer.Exit()


@app.command(
    cls=PassthroughCommand,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": ["-h", "--help"],
    }
)
def run(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    next_config: bool = typer.Option(
        False, "--next", help="Switch to the next configuration."
    ),
    list_configs: bool = typer.Option(
        False, "--list", help="List all configurations."
    ),
    add: bool = typer.Option(
        False, "--add", help="Add a new configuration (interactive)."
    ),
    edit: Optional[str] = typer.Option(
        None, "--edit", metavar="NAME", help="Edit a configuration (interactive)."
    ),
    use: Optional[int] = typer.Option(
        None, "--use", metavar="INDEX", help="Switch to the configuration at INDEX."
    ),
    remove: Optional[int] = typer.Option(
        None, "--remove", metavar="INDEX", help="Delete the configuration at INDEX."
    ),
    config_path: bool = typer.Option(
        False, "--config-path", help="Show the config file path."
    ),
    migrate: bool = typer.Option(
        False, "--migrate", help="Migrate the config file to the latest format."
    ),
    reset: bool = typer.Option(
        False, "--reset", help="Reset the config file to defaults."
    ),
    force: bool = typer.Option(
        False, "--force", help="Skip confirmations."
    ),
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", envvar=CONFIG_DIR_ENV, help="Configuration directory."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output for --list."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable debug output."
    ),
) -> None:
    """Manage profiles, or run claude with the current profile.

    Without a management flag every argument is passed through to claude
    unchanged, including options auo itself accepts such as --verbose.
    """
    set_output(
        OutputManager(
            format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    actions = [
        next_config,
        list_configs,
        add,
        edit is not None,
        use is not None,
        remove is not None,
        config_path,
        migrate,
        reset,
    ]
    try:
        if sum(actions) > 1:
            raise InvalidUsageError("Only one management option can be used at a time.")
        if any(actions) and ctx.args:
            raise InvalidUsageError(f"Unexpected arguments: {' '.join(ctx.args)}")

        _dispatch(
            ConfigStore(config_dir),
            ctx.meta.get(_PASSTHROUGH_KEY, list(ctx.args)),
            next_config=next_config,
            list_configs=list_configs,
            add=add,
            edit=edit,
            use=use,
            remove=remove,
            config_path=config_path,
            migrate=migrate,
            reset=reset,
            force=force,
        )
    except AuoError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def _dispatch(
    store: ConfigStore,
    args: list[str],
    *,
    next_config: bool,
    list_configs: bool,
    add: bool,
    edit: Optional[str],
    use: Optional[int],
    remove: Optional[int],
    config_path: bool,
    migrate: bool,
    reset: bool,
    force: bool,
) -> None:
    if next_config:
        _switch_next(store)
    elif list_configs:
        _list_configs(store)
    elif add:
        _add_interactive(store)
    elif edit is not None:
        _edit_interactive(store, edit)
    elif use is not None:
        _use(store, use)
    elif remove is not None:
        if not store.remove_config_by_index(remove):
            raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    elif config_path:
        print_data(str(store.get_config_path()))
    elif migrate:
        store.force_migration()
    elif reset:
        _reset(store, force)
    else:
        _launch(store, list(args))


# ------------------------------------------------------------------ #
# Management actions
# ------------------------------------------------------------------ #


def _describe(provider: ProviderV2) -> str:
    if provider.description:
        return f"{provider.name} - {provider.description}"
    return provider.name


def _switch_next(store: ConfigStore) -> None:
    provider = store.switch_to_next()
    success(f"Switched to config: {_describe(provider)}")
    info(f"   Base URL: {provider.env.base_url or '(not set)'}")
    info(f"   Token: {'set' if provider.env.auth_token else 'not set'}")
    info(f"   Model: {provider.env.model or '(not set)'}")


def _use(store: ConfigStore, index: int) -> None:
    provider = store.switch_to_index(index)
    if provider is None:
        suggest("Run 'auo --list' to see available configurations.")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    success(f"Switched to config: {_describe(provider)}")


def _list_configs(store: ConfigStore) -> None:
    config = store.load()
    rows = []
    for index, provider in enumerate(config.providers):
        env = provider.env
        rows.append(
            [
                "*" if index == config.current_index else "",
                str(index),
                provider.name,
                provider.description,
                env.base_url or "(not set)",
                "set" if env.auth_token else "not set",
                env.model or "(not set)",
            ]
        )
    print_table(
        ["Current", "Index", "Name", "Description", "Base URL", "Auth Token", "Model"],
        rows,
        title="Configurations",
    )


def _add_interactive(store: ConfigStore) -> None:
    name = typer.prompt("Config name")
    base_url = typer.prompt("Base URL (leave blank for default)", default="", show_default=False)
    auth_token = typer.prompt("Auth token", hide_input=True)
    model = typer.prompt("Model (optional)", default="", show_default=False)
    description = typer.prompt("Description (optional)", default="", show_default=False)

    params = AddConfigParamsV2(
        name=name,
        description=description,
        env=ProviderEnv(base_url=base_url, auth_token=auth_token, model=model),
    )
    if not store.add_config(params):
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    suggest(f"Run 'auo --use {len(store.get_all_configs()) - 1}' to make it current.")


def _ask(label: str, shown: str, hide_input: bool = False) -> str:
    answer = typer.prompt(
        f"{label} [{shown}]",
        default="",
        show_default=False,
        hide_input=hide_input,
    )
    return answer.strip()


def _edit_interactive(store: ConfigStore, name: str) -> None:
    current = store.get_config(name)
    if current is None:
        error(f'Configuration "{name}" not found')
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)

    info(f"Leave a field blank to keep it, enter '{CLEAR_MARKER}' to clear it.")
    updates: dict[str, Any] = {}

    new_name = _ask("Name", current.name)
    if new_name and new_name != CLEAR_MARKER:
        updates["name"] = new_name

    description = _ask("Description", current.description or "(empty)")
    if description == CLEAR_MARKER:
        updates["description"] = ""
    elif description:
        updates["description"] = description

    env = current.env
    env_updates: dict[str, Optional[str]] = {}
    prompts = (
        ("ANTHROPIC_BASE_URL", "Base URL", env.base_url or "(not set)", False),
        ("ANTHROPIC_AUTH_TOKEN", "Auth token", "set" if env.auth_token else "not set", True),
        ("ANTHROPIC_MODEL", "Model", env.model or "(not set)", False),
    )
    for key, label, shown, secret in prompts:
        answer = _ask(label, shown, hide_input=secret)
        if answer == CLEAR_MARKER:
            env_updates[key] = None
        elif answer:
            env_updates[key] = answer
    if env_updates:
        updates["env"] = env_updates

    if not updates:
        info("Nothing changed.")
        return
    if not store.update_config(name, updates):
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


def _reset(store: ConfigStore, force: bool) -> None:
    if not force:
        confirmed = typer.confirm("Reset all configurations to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()
    store.reset_config()


# ------------------------------------------------------------------ #
# Launch
# ------------------------------------------------------------------ #


def _show_current(provider: ProviderV2) -> None:
    env = provider.env
    if provider.name != DEFAULT_PROFILE_NAME or env.base_url or env.auth_token:
        info(f"Current config: {_describe(provider)}")


def _launch(store: ConfigStore, args: list[str]) -> None:
    if not check_claude_code():
        warning("Claude Code is not installed. Installing for the first use...")
        install_claude_code()

    provider = store.get_current_config()
    _show_current(provider)
    exit_code = run_claude_code(args, store.get_config_environment(provider))
    raise typer.Exit(code=exit_code)


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C outside of claude exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``auo`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except AuoError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
