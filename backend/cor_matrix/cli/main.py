"""CLI entrypoint for COR Matrix."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional, TypeVar

from pydantic import ValidationError
import typer
import uvicorn

from cor_matrix.client.api import ApiError, CorApiClient
from cor_matrix.core.config import Settings
from cor_matrix.core.errors import CorError
from cor_matrix.core.logging import configure_logging
from cor_matrix.report.service import ReportService

app = typer.Typer(name="cor-matrix", help="COR Matrix command-line interface", no_args_is_help=True)
workspaces_app = typer.Typer(name="workspaces", help="Manage workspaces", no_args_is_help=True)
tokens_app = typer.Typer(name="tokens", help="Manage workspace access tokens", no_args_is_help=True)
app.add_typer(workspaces_app, name="workspaces")
app.add_typer(tokens_app, name="tokens")

T = TypeVar("T")

API_URL_OPTION = typer.Option(..., "--api-url", "-u", envvar="COR_MATRIX_BASE_URL", help="COR Matrix API base URL")
API_KEY_OPTION = typer.Option(..., "--api-key", "-k", envvar="COR_MATRIX_API_KEY", help="Admin API key")


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return func(*args, **kwargs)
    except (CorError, ApiError) as exc:
        _fail(exc.message)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _admin_client(api_url: str, api_key: str) -> CorApiClient:
    return CorApiClient(api_url, credential=api_key)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", envvar="COR_MATRIX_LOG_LEVEL", help="Log level for stderr"),
) -> None:
    configure_logging(log_level.upper(), use_json=False)


@app.command()
def report(
    workspace_id: str = typer.Option(..., "--workspace-id", "-w", envvar="COR_MATRIX_WORKSPACE_ID", help="Workspace ID"),
    project_path: Path = typer.Option(
        ..., "--project-path", "-p", envvar="COR_MATRIX_PROJECT_PATH", help="Codebase directory to scan"
    ),
    api_url: str = API_URL_OPTION,
    api_token: str = typer.Option(..., "--api-token", "-t", envvar="COR_MATRIX_TOKEN", help="Workspace token"),
    as_json: bool = typer.Option(False, "--json", help="Print metrics as JSON"),
    unique: bool = typer.Option(False, "--unique", help="Also show unique-signature overlap"),
) -> None:
    """Compare the codebase with recorded AI-generated lines."""
    client = CorApiClient(api_url, credential=api_token)
    try:
        result = _call(ReportService(workspace_id, project_path, client).run)
    finally:
        client.close()
    if as_json:
        _echo_json(result.to_dict(unique=unique))
    else:
        typer.echo(result.render(unique=unique))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8080, "--port", help="Port to listen on"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
) -> None:
    """Run the COR Matrix API server."""
    from cor_matrix.app import create_app

    try:
        settings = Settings.from_yaml(config)
    except ValidationError as exc:
        _fail(f"Invalid configuration: {exc}")
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


# Workspaces ---------------------------------------------------------------


@workspaces_app.command("create")
def create_workspace(
    name: str = typer.Argument(..., help="Workspace name"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Create a workspace."""
    _echo_json(_call(_admin_client(api_url, api_key).create_workspace, name))


@workspaces_app.command("list")
def list_workspaces(
    include_archived: bool = typer.Option(False, "--include-archived", help="Include archived workspaces"),
    limit: int = typer.Option(50, "--limit", min=1, max=100),
    offset: int = typer.Option(0, "--offset", min=0),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """List workspaces."""
    client = _admin_client(api_url, api_key)
    _echo_json(_call(client.list_workspaces, include_archived=include_archived, limit=limit, offset=offset))


@workspaces_app.command("get")
def get_workspace(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Show one workspace."""
    _echo_json(_call(_admin_client(api_url, api_key).get_workspace, workspace_id))


@workspaces_app.command("update")
def update_workspace(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    name: str = typer.Option(..., "--name", "-n", help="New workspace name"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Rename a workspace."""
    _echo_json(_call(_admin_client(api_url, api_key).update_workspace, workspace_id, name))


@workspaces_app.command("archive")
def archive_workspace(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Archive a workspace."""
    _echo_json(_call(_admin_client(api_url, api_key).archive_workspace, workspace_id))


@workspaces_app.command("unarchive")
def unarchive_workspace(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Restore an archived workspace."""
    _echo_json(_call(_admin_client(api_url, api_key).unarchive_workspace, workspace_id))


@workspaces_app.command("delete")
def delete_workspace(
    workspace_id: str = typer.Argument(..., help="Workspace ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Delete a workspace with all of its records and tokens."""
    if not yes:
        typer.confirm(f"Delete workspace {workspace_id} and all of its data?", abort=True)
    _echo_json(_call(_admin_client(api_url, api_key).delete_workspace, workspace_id))


# Tokens -------------------------------------------------------------------


@tokens_app.command("create")
def create_token(
    workspace_id: str = typer.Option(..., "--workspace-id", "-w", help="Workspace the token grants access to"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Free-form description"),
    expires_at: Optional[int] = typer.Option(None, "--expires-at", help="Expiry as epoch milliseconds"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Issue a token for a workspace."""
    client = _admin_client(api_url, api_key)
    _echo_json(_call(client.create_token, workspace_id, description=description, expires_at=expires_at))


@tokens_app.command("list")
def list_tokens(
    workspace_id: Optional[str] = typer.Option(None, "--workspace-id", "-w", help="Only tokens of this workspace"),
    include_revoked: bool = typer.Option(False, "--include-revoked", help="Include revoked tokens"),
    limit: int = typer.Option(50, "--limit", min=1, max=100),
    offset: int = typer.Option(0, "--offset", min=0),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """List tokens."""
    client = _admin_client(api_url, api_key)
    _echo_json(
        _call(
            client.list_tokens,
            workspace_id=workspace_id,
            include_revoked=include_revoked,
            limit=limit,
            offset=offset,
        )
    )


@tokens_app.command("get")
def get_token(
    token_id: str = typer.Argument(..., help="Token ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Show one token."""
    _echo_json(_call(_admin_client(api_url, api_key).get_token, token_id))


@tokens_app.command("update")
def update_token(
    token_id: str = typer.Argument(..., help="Token ID"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    expires_at: Optional[int] = typer.Option(None, "--expires-at", help="Expiry as epoch milliseconds"),
    never_expires: bool = typer.Option(False, "--never-expires", help="Clear the expiry"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Change a token's description or expiry."""
    changes: dict[str, Any] = {}
    if description is not None:
        changes["description"] = description
    if never_expires:
        changes["expiresAt"] = None
    elif expires_at is not None:
        changes["expiresAt"] = expires_at
    if not changes:
        _fail("Nothing to update: pass --description, --expires-at or --never-expires.")
    _echo_json(_call(_admin_client(api_url, api_key).update_token, token_id, changes))


@tokens_app.command("revoke")
def revoke_token(
    token_id: str = typer.Argument(..., help="Token ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Revoke a token."""
    _echo_json(_call(_admin_client(api_url, api_key).revoke_token, token_id))


@tokens_app.command("unrevoke")
def unrevoke_token(
    token_id: str = typer.Argument(..., help="Token ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Reactivate a revoked token."""
    _echo_json(_call(_admin_client(api_url, api_key).unrevoke_token, token_id))


@tokens_app.command("delete")
def delete_token(
    token_id: str = typer.Argument(..., help="Token ID"),
    api_url: str = API_URL_OPTION,
    api_key: str = API_KEY_OPTION,
) -> None:
    """Delete a token."""
    _echo_json(_call(_admin_client(api_url, api_key).delete_token, token_id))


if __name__ == "__main__":
    app()
