"""Click CLI for operating the portfolio API pipeline."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from src.audit.logger import validate_audit_chain
from src.models import Focus, Role
from src.pitch.engine import ResponseRuleEngine, RuleNotFoundError, missing_rules
from src.pitch.rules import PITCH_RULES


@click.group()
def cli() -> None:
    """Portfolio site API: pitch rules, audit log and server."""


@cli.command()
@click.argument("role", type=click.Choice([r.value for r in Role]))
@click.option("--focus", type=click.Choice([f.value for f in Focus]), default=None)
@click.option("--query", default=None, help="Free-form query instead of a focus.")
def pitch(role: str, focus: str | None, query: str | None) -> None:
    """Print the pitch the API would return for ROLE."""
    if (focus is None) == (query is None):
        raise click.UsageError("Pass exactly one of --focus or --query.")
    engine = ResponseRuleEngine()
    try:
        if focus is not None:
            result = engine.generate(Role(role), Focus(focus))
        else:
            result = engine.generate_for_query(Role(role), query or "")
    except RuleNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(result.model_dump_json(indent=2))


@cli.command("check-rules")
def check_rules() -> None:
    """Verify every role/focus pair has a pitch rule."""
    gaps = missing_rules(PITCH_RULES)
    if gaps:
        for role, focus in gaps:
            click.echo(f"missing: {role.value}/{focus.value}", err=True)
        sys.exit(1)
    click.echo(f"OK: {len(PITCH_RULES)} rules cover all {len(Role) * len(Focus)} pairs")


@cli.command("audit-verify")
@click.argument("log_path", type=click.Path(exists=True, dir_okay=False))
def audit_verify(log_path: str) -> None:
    """Validate the hash chain of an audit log."""
    result = validate_audit_chain(Path(log_path))
    click.echo(json.dumps({"valid": result.valid, "broken_at_line": result.broken_at_line}))
    if not result.valid:
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1")
@click.option("--port", default=8000, type=int)
def serve(host: str, port: int) -> None:
    """Run the API with uvicorn, configured from the environment."""
    import uvicorn

    uvicorn.run("src.api.app:create_app_from_env", factory=True, host=host, port=port)
