"""
CLI entry point for regex-permissions.

This module provides the Typer-based command-line interface.

Commands:
    hook        Answer one PreToolUse request read from stdin
    check       Evaluate a single tool call and show the decision
    rules       List configured rules and whether each one compiles

Architecture Note:
    The CLI is intentionally thin - it parses arguments and delegates to the
    config and policy modules. The hook command must stay silent on stdout
    unless it has a decision; diagnostics go to stderr.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from regex_permissions import __version__
from regex_permissions.config import (
    global_settings_path,
    load_rules_file,
    load_scoped_config,
    prepare_rules,
    project_settings_path,
)
from regex_permissions.diagnostics import configure_logging
from regex_permissions.errors import RegexPermissionsError, RuleParseError
from regex_permissions.hook import run_hook
from regex_permissions.policy import PolicyEngine, RuleParser, primary_field
from regex_permissions.schema import CATEGORIES, Decision, RegexPermissions

app = typer.Typer(
    name="regex-permissions",
    help="Regex allow/ask/deny rules for assistant tool calls.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

DECISION_STYLES = {
    "deny": "red",
    "ask": "yellow",
    "allow": "green",
    "passthrough": "dim",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]regex-permissions[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug diagnostics on stderr.",
        ),
    ] = False,
) -> None:
    """
    Regex-based permission rules for PreToolUse hooks.

    Rules are read from the regexPermissions key of
    <project>/.claude/settings.local.json and ~/.claude/settings.local.json.
    """
    configure_logging(verbose)


@app.command()
def hook(
    home: Annotated[
        Optional[Path],
        typer.Option(
            "--home",
            help="Directory holding the global .claude settings. Defaults to ~.",
        ),
    ] = None,
) -> None:
    """
    Answer one PreToolUse request.

    Reads the request JSON from stdin and prints the decision envelope, or
    nothing when no rule applies. Always exits 0.

    Example:
        $ echo '{"tool_name": "Bash", "tool_input": {"command": "ls"}}' | regex-permissions hook
    """
    raw_input = sys.stdin.buffer.read().decode("utf-8", errors="replace")
    output = run_hook(raw_input, home)
    if output:
        typer.echo(json.dumps(output))


@app.command()
def check(
    tool_name: Annotated[
        str,
        typer.Argument(help="Tool name, e.g. Bash or WebFetch."),
    ],
    content: Annotated[
        Optional[str],
        typer.Argument(help="Value for the tool's primary field (command, file_path, url, ...)."),
    ] = None,
    input_json: Annotated[
        Optional[str],
        typer.Option(
            "--input",
            "-i",
            help="Full tool_input as a JSON object.",
        ),
    ] = None,
    cwd: Annotated[
        Optional[Path],
        typer.Option(
            "--cwd",
            help="Project directory for project-scope settings. Defaults to the current directory.",
        ),
    ] = None,
    home: Annotated[
        Optional[Path],
        typer.Option(
            "--home",
            help="Directory holding the global .claude settings. Defaults to ~.",
        ),
    ] = None,
    rules_path: Annotated[
        Optional[Path],
        typer.Option(
            "--rules",
            "-r",
            help="Standalone YAML/JSON rule file to use instead of the settings scopes.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the decision as JSON.",
        ),
    ] = False,
) -> None:
    """
    Evaluate a single tool call.

    Example:
        $ regex-permissions check Bash "git push --force origin main"
        $ regex-permissions check WebFetch -i '{"url": "https://example.com"}'
    """
    arguments = _build_arguments(tool_name, content, input_json, json_output)
    config = _load_config(cwd, home, rules_path, json_output)

    engine = PolicyEngine(prepare_rules(config))
    decision = engine.evaluate(tool_name, arguments)

    if json_output:
        print(json.dumps(_decision_dict(decision), indent=2))
        return

    style = DECISION_STYLES[decision.label]
    console.print(f"[{style}]{decision.label}[/{style}] {escape(tool_name)}")
    if decision.reason:
        console.print(f"  Reason: {escape(decision.reason)}")
    if decision.rule_matched:
        console.print(f"  Rule: [cyan]{escape(decision.rule_matched)}[/cyan]", highlight=False)


@app.command("rules")
def list_rules(
    cwd: Annotated[
        Optional[Path],
        typer.Option(
            "--cwd",
            help="Project directory for project-scope settings. Defaults to the current directory.",
        ),
    ] = None,
    home: Annotated[
        Optional[Path],
        typer.Option(
            "--home",
            help="Directory holding the global .claude settings. Defaults to ~.",
        ),
    ] = None,
    rules_path: Annotated[
        Optional[Path],
        typer.Option(
            "--rules",
            "-r",
            help="Standalone YAML/JSON rule file to use instead of the settings scopes.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Exit 1 if any rule would be dropped.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
) -> None:
    """
    List configured rules in evaluation order.

    Each rule is compiled as the hook would compile it; rules that would be
    silently dropped are shown with the reason.

    Example:
        $ regex-permissions rules --strict
    """
    config = _load_config(cwd, home, rules_path, json_output)
    rows = _lint_rules(config)
    dropped = sum(1 for row in rows if not row["ok"])

    if json_output:
        print(json.dumps({"ok": dropped == 0, "rules": rows}, indent=2))
    else:
        if rules_path is None:
            project_dir = cwd or Path.cwd()
            console.print(f"[dim]Project: {project_settings_path(project_dir)}[/dim]")
            console.print(f"[dim]Global:  {global_settings_path(home)}[/dim]")
        else:
            console.print(f"[dim]Rules: {rules_path}[/dim]")
        console.print()

        if not rows:
            console.print("[dim]No rules configured.[/dim]")
        else:
            table = Table(show_header=True, header_style="bold")
            table.add_column("#", style="dim", width=3)
            table.add_column("Category", width=8)
            table.add_column("Rule", style="cyan")
            table.add_column("Flags", width=5)
            table.add_column("Status")

            for row in rows:
                style = DECISION_STYLES[row["category"]]
                if row["ok"]:
                    status = "[green]ok[/green]"
                    if row["reason"]:
                        status += f" [dim]{escape(row['reason'])}[/dim]"
                else:
                    status = f"[red]dropped[/red] {escape(row['error'])}"
                table.add_row(
                    str(row["index"] + 1),
                    f"[{style}]{row['category']}[/{style}]",
                    escape(row["rule"]),
                    escape(row["flags"] or ""),
                    status,
                )

            console.print(table)
            console.print()
            if dropped:
                console.print(f"[yellow]{dropped} rule(s) will be skipped.[/yellow]")
            else:
                console.print(f"[green]All {len(rows)} rule(s) compile.[/green]")

    if strict and dropped:
        raise typer.Exit(code=1)


# =============================================================================
# Helpers
# =============================================================================


def _build_arguments(
    tool_name: str,
    content: str | None,
    input_json: str | None,
    json_output: bool,
) -> dict[str, Any]:
    arguments: dict[str, Any] = {}
    if input_json is not None:
        try:
            parsed = json.loads(input_json)
        except (json.JSONDecodeError, RecursionError) as e:
            _fail("input_error", f"--input is not valid JSON: {e}", json_output)
        if not isinstance(parsed, dict):
            _fail("input_error", "--input must be a JSON object", json_output)
        arguments.update(parsed)
    if content is not None:
        arguments[primary_field(tool_name)] = content
    return arguments


def _load_config(
    cwd: Path | None,
    home: Path | None,
    rules_path: Path | None,
    json_output: bool,
) -> RegexPermissions:
    if rules_path is not None:
        try:
            return load_rules_file(rules_path)
        except RegexPermissionsError as e:
            _fail("rules_load_error", str(e), json_output)
    return load_scoped_config(cwd or Path.cwd(), home)


def _lint_rules(config: RegexPermissions) -> list[dict[str, Any]]:
    """Compile every entry strictly and report the outcome per rule."""
    parser = RuleParser()
    rows: list[dict[str, Any]] = []
    for category in CATEGORIES:
        for index, entry in enumerate(config.entries(category)):
            row: dict[str, Any] = {
                "category": category,
                "index": index,
                "rule": _entry_field(entry, "rule") or repr(entry),
                "flags": _entry_field(entry, "flags"),
                "reason": _entry_field(entry, "reason"),
                "ok": True,
                "error": None,
            }
            try:
                parser.parse_strict(entry, category)
            except RuleParseError as e:
                row["ok"] = False
                row["error"] = e.message
            rows.append(row)
    return rows


def _entry_field(entry: Any, name: str) -> str | None:
    if isinstance(entry, str):
        return entry if name == "rule" else None
    if isinstance(entry, dict):
        value = entry.get(name)
        return value if isinstance(value, str) else None
    return None


def _decision_dict(decision: Decision) -> dict[str, Any]:
    return {
        "decision": decision.label,
        "reason": decision.reason,
        "rule_matched": decision.rule_matched,
        "hook_output": decision.to_hook_output(),
    }


def _fail(error_type: str, message: str, json_output: bool) -> NoReturn:
    if json_output:
        print(json.dumps({"error": error_type, "message": message}, indent=2))
    else:
        console.print(f"[red]{escape(message)}[/red]", highlight=False)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
