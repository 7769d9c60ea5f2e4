#!/usr/bin/env python3
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "typer",
#     "rich",
#     "platformdirs",
#     "readchar",
#     "httpx",
#     "truststore",
# ]
# ///
"""
create-figdata - Bootstrap a figdata project

Creates the private Bitbucket repository, clones the figdata template into a
fresh git workspace pointing at it, then stamps the project id into
package.json.

Usage:
    uvx create-figdata
    create-figdata --name my-chart
    create-figdata --name my-chart --grant-permissions --permission admin

Or install globally:
    uv tool install create-figdata
    create-figdata
"""

import base64
import json
import os
import re
import shutil
import ssl
import stat
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import typer
import httpx
from platformdirs import user_config_path
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text
from rich.live import Live
from rich.align import Align
from rich.table import Table
from rich.tree import Tree

# For cross-platform keyboard input
import readchar
import truststore

ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)

# Constants
APP_NAME = "create-figdata"
API_BASE = "https://api.bitbucket.org/2.0"
BITBUCKET_WORKSPACE = "lefigaro"
PROJECT_KEY = "DAT"
PERMISSION_GROUP = "datavis-developers"
TEMPLATE_URL = "git@bitbucket.org:lefigaro/data-vite-scaffolder.git"
CREDENTIALS_FILENAME = "bitbucket-credentials.json"
CREDENTIALS_ENVVAR = "CREATE_FIGDATA_CREDENTIALS"
MANIFEST_FILENAME = "package.json"
DEFAULT_TIMEOUT = 30.0

PERMISSION_CHOICES = {
    "read": "Read only",
    "write": "Read and push",
    "admin": "Full administration",
}

# Bitbucket repository slugs; also safe as a folder name and URL segment
PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")

CREDENTIALS_SHAPE = """{
  "username": "your_username",
  "token": "your_token"
}"""


class FailureKind(str, Enum):
    FILE_MISSING = "file_missing"
    MALFORMED_JSON = "malformed_json"
    INCOMPLETE_CREDENTIALS = "incomplete_credentials"
    INVALID_PROJECT_NAME = "invalid_project_name"
    INVALID_PERMISSION = "invalid_permission"
    REMOTE_CREATION_FAILED = "remote_creation_failed"
    PERMISSION_UPDATE_FAILED = "permission_update_failed"
    WORKSPACE_SETUP_FAILED = "workspace_setup_failed"
    MANIFEST_MISSING = "manifest_missing"
    MANIFEST_MALFORMED = "manifest_malformed"


FAILURE_TITLES = {
    FailureKind.FILE_MISSING: "Credentials Not Found",
    FailureKind.MALFORMED_JSON: "Invalid Credentials JSON",
    FailureKind.INCOMPLETE_CREDENTIALS: "Incomplete Credentials",
    FailureKind.INVALID_PROJECT_NAME: "Invalid Project Id",
    FailureKind.INVALID_PERMISSION: "Invalid Permission",
    FailureKind.REMOTE_CREATION_FAILED: "Bitbucket Repository Creation Failed",
    FailureKind.PERMISSION_UPDATE_FAILED: "Permission Update Failed",
    FailureKind.WORKSPACE_SETUP_FAILED: "Workspace Setup Failed",
    FailureKind.MANIFEST_MISSING: "Manifest Not Found",
    FailureKind.MANIFEST_MALFORMED: "Invalid Manifest",
}


@dataclass(frozen=True)
class Success:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def title(self) -> str:
        return FAILURE_TITLES[self.kind]


Result = Union[Success, Failure]


@dataclass(frozen=True)
class Credentials:
    username: str
    token: str


@dataclass(frozen=True)
class RepositoryDescriptor:
    url: str


@dataclass(frozen=True)
class ScaffoldConfig:
    """Everything the scaffold steps need to know about Bitbucket and the template."""

    api_base: str = API_BASE
    workspace: str = BITBUCKET_WORKSPACE
    project_key: str = PROJECT_KEY
    group: str = PERMISSION_GROUP
    template_url: str = TEMPLATE_URL
    credentials_path: Path = Path(CREDENTIALS_FILENAME)
    manifest_name: str = MANIFEST_FILENAME
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class ScaffoldOutcome:
    name: str
    project_path: Path
    repo_url: str
    permission_status: Optional[int] = None


def default_credentials_path() -> Path:
    """Return ./bitbucket-credentials.json, or the per-user copy when only that one exists."""
    local = Path(CREDENTIALS_FILENAME)
    if local.exists():
        return local
    user_file = user_config_path(APP_NAME) / CREDENTIALS_FILENAME
    if user_file.exists():
        return user_file
    return local


def load_credentials(path: Path) -> Result:
    """Read and validate the Bitbucket credentials file.

    Returns Success(Credentials) or a Failure of kind FILE_MISSING,
    MALFORMED_JSON or INCOMPLETE_CREDENTIALS.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Failure(
            FailureKind.FILE_MISSING,
            f"The credentials file {path} does not exist.\n"
            f"Create it with the format:\n{CREDENTIALS_SHAPE}",
        )
    except UnicodeDecodeError as e:
        return Failure(
            FailureKind.MALFORMED_JSON,
            f"{path} is not UTF-8 encoded JSON. Save it as UTF-8 with the format:\n{CREDENTIALS_SHAPE}",
            detail=str(e),
        )
    except OSError as e:
        return Failure(
            FailureKind.FILE_MISSING,
            f"The credentials file {path} could not be read: {e}\n"
            f"Expected format:\n{CREDENTIALS_SHAPE}",
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return Failure(
            FailureKind.MALFORMED_JSON,
            f"{path} contains invalid JSON (line {e.lineno}, column {e.colno}).",
            detail=e.msg,
        )

    if not isinstance(data, dict):
        data = {}
    username = data.get("username")
    token = data.get("token")
    if not (isinstance(username, str) and username) or not (isinstance(token, str) and token):
        return Failure(
            FailureKind.INCOMPLETE_CREDENTIALS,
            f"{path} must contain the required fields:\n{CREDENTIALS_SHAPE}",
        )
    return Success(Credentials(username=username, token=token))


def validate_project_name(raw: Optional[str]) -> Result:
    """Check that a project id is usable as a repository slug and folder name."""
    name = (raw or "").strip()
    if not name:
        return Failure(FailureKind.INVALID_PROJECT_NAME, "A project id is required.")
    if PROJECT_NAME_PATTERN.match(name):
        return Success(name)
    if PROJECT_NAME_PATTERN.match(name.lower()):
        return Failure(
            FailureKind.INVALID_PROJECT_NAME,
            f"Project id '{name}' must be lowercase (try '{name.lower()}').",
        )
    return Failure(
        FailureKind.INVALID_PROJECT_NAME,
        f"Project id '{name}' may only contain lowercase letters, digits, '.', '_' and '-', "
        "and must start with a letter or digit.",
    )


def _bitbucket_auth_headers(credentials: Credentials) -> dict:
    """Return Basic auth headers for the Bitbucket REST API."""
    token = base64.b64encode(f"{credentials.username}:{credentials.token}".encode("utf-8")).decode("ascii")
    return {
        "Authorization": f"Basic {token}",
        "Accept": "application/json",
    }


def _remote_error_message(response: httpx.Response) -> str:
    """Prefer Bitbucket's error.message; fall back to the HTTP status."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"HTTP {response.status_code}"


def _response_detail(response: httpx.Response) -> str:
    request = response.request
    return f"{request.method} {request.url} -> {response.status_code}\nBody (truncated 500): {response.text[:500]}"


def create_remote_repository(name: str, config: ScaffoldConfig, client: httpx.Client) -> Result:
    """Create the private Bitbucket repository and return its web URL."""
    if not name:
        return Failure(FailureKind.INVALID_PROJECT_NAME, "The repository name is required.")

    loaded = load_credentials(config.credentials_path)
    if isinstance(loaded, Failure):
        return loaded

    url = f"{config.api_base}/repositories/{config.workspace}/{name}"
    payload = {
        "scm": "git",
        "is_private": True,
        "project": {"key": config.project_key},
    }
    try:
        response = client.post(
            url,
            json=payload,
            headers=_bitbucket_auth_headers(loaded.value),
            timeout=config.timeout,
        )
    except httpx.HTTPError as e:
        return Failure(FailureKind.REMOTE_CREATION_FAILED, f"Could not reach Bitbucket: {e}", detail=f"POST {url}")

    if not response.is_success:
        return Failure(
            FailureKind.REMOTE_CREATION_FAILED,
            _remote_error_message(response),
            detail=_response_detail(response),
        )

    try:
        href = response.json()["links"]["html"]["href"]
    except (ValueError, KeyError, TypeError):
        href = None
    if not (isinstance(href, str) and href):
        return Failure(
            FailureKind.REMOTE_CREATION_FAILED,
            "Bitbucket did not return the repository URL.",
            detail=_response_detail(response),
        )
    return Success(RepositoryDescriptor(url=href))


def update_repository_permissions(name: str, permission: str, config: ScaffoldConfig, client: httpx.Client) -> Result:
    """Grant the configured group access to the repository.

    The level is validated against PERMISSION_CHOICES, but the request always
    grants "admin". Returns Success(status_code).
    """
    loaded = load_credentials(config.credentials_path)
    if isinstance(loaded, Failure):
        return loaded

    if not name:
        return Failure(FailureKind.INVALID_PROJECT_NAME, "The repository name is required.")

    normalized = (permission or "").lower()
    if normalized not in PERMISSION_CHOICES:
        return Failure(FailureKind.INVALID_PERMISSION, 'The permission must be "read", "write" or "admin".')

    url = f"{config.api_base}/repositories/{config.workspace}/{name}/permissions-config/groups/{config.group}"
    try:
        response = client.put(
            url,
            json={"permission": "admin"},
            headers=_bitbucket_auth_headers(loaded.value),
            timeout=config.timeout,
        )
    except httpx.HTTPError as e:
        return Failure(FailureKind.PERMISSION_UPDATE_FAILED, f"Could not reach Bitbucket: {e}", detail=f"PUT {url}")

    if not response.is_success:
        return Failure(
            FailureKind.PERMISSION_UPDATE_FAILED,
            _remote_error_message(response),
            detail=_response_detail(response),
        )
    return Success(response.status_code)


# ASCII Art Banner
BANNER = """
╔═╗╦╔═╗╔╦╗╔═╗╔╦╗╔═╗
╠╣ ║║ ╦ ║║╠═╣ ║ ╠═╣
╚  ╩╚═╝═╩╝╩ ╩ ╩ ╩ ╩
"""

TAGLINE = "New figdata project from the data-vite-scaffolder template"


class StepTracker:
    """Track and render the scaffold steps as a tree.
    Supports live auto-refresh via an attached refresh callback.
    """
    def __init__(self, title: str):
        self.title = title
        self.steps = []  # list of dicts: {key, label, status, detail}
        self._refresh_cb = None  # callable to trigger UI refresh

    def attach_refresh(self, cb):
        self._refresh_cb = cb

    def add(self, key: str, label: str):
        if key not in [s["key"] for s in self.steps]:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})
            self._maybe_refresh()

    def start(self, key: str, detail: str = ""):
        self._update(key, status="running", detail=detail)

    def complete(self, key: str, detail: str = ""):
        self._update(key, status="done", detail=detail)

    def error(self, key: str, detail: str = ""):
        self._update(key, status="error", detail=detail)

    def skip(self, key: str, detail: str = ""):
        self._update(key, status="skipped", detail=detail)

    def status(self, key: str) -> Optional[str]:
        for s in self.steps:
            if s["key"] == key:
                return s["status"]
        return None

    def _update(self, key: str, status: str, detail: str):
        for s in self.steps:
            if s["key"] == key:
                s["status"] = status
                if detail:
                    s["detail"] = detail
                self._maybe_refresh()
                return
        # If not present, add it
        self.steps.append({"key": key, "label": key, "status": status, "detail": detail})
        self._maybe_refresh()

    def _maybe_refresh(self):
        if self._refresh_cb:
            try:
                self._refresh_cb()
            except Exception:
                pass

    def render(self):
        tree = Tree(f"[cyan]{escape(self.title)}[/cyan]", guide_style="grey50")
        for step in self.steps:
            label = escape(step["label"])
            detail_text = escape(step["detail"].strip()) if step["detail"] else ""

            status = step["status"]
            if status == "done":
                symbol = "[green]●[/green]"
            elif status == "pending":
                symbol = "[green dim]○[/green dim]"
            elif status == "running":
                symbol = "[cyan]○[/cyan]"
            elif status == "error":
                symbol = "[red]●[/red]"
            elif status == "skipped":
                symbol = "[yellow]○[/yellow]"
            else:
                symbol = " "

            if status == "pending":
                if detail_text:
                    line = f"{symbol} [bright_black]{label} ({detail_text})[/bright_black]"
                else:
                    line = f"{symbol} [bright_black]{label}[/bright_black]"
            else:
                if detail_text:
                    line = f"{symbol} [white]{label}[/white] [bright_black]({detail_text})[/bright_black]"
                else:
                    line = f"{symbol} [white]{label}[/white]"

            tree.add(line)
        return tree


def run_git(args: list[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    """Run a git command, raising CalledProcessError on a non-zero exit."""
    return subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)


def _clear_readonly(func, path, _exc):
    """rmtree error handler: git keeps pack files read-only, which Windows refuses to delete."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


def initialize_workspace(
    project_path: Path,
    repo_url: str,
    config: ScaffoldConfig,
    tracker: StepTracker | None = None,
) -> Result:
    """Clone the template into project_path and re-point it at repo_url.

    Steps: shallow clone, drop the template history, git init, add origin.
    Nothing is rolled back on failure; the directory is left as it is.
    """
    git_dir = project_path / ".git"

    def strip_history():
        if not git_dir.exists():
            return
        if sys.version_info >= (3, 12):
            shutil.rmtree(git_dir, onexc=_clear_readonly)
        else:
            shutil.rmtree(git_dir, onerror=_clear_readonly)

    steps = [
        ("clone", "Clone template", lambda: run_git(["clone", "--depth", "1", config.template_url, str(project_path)])),
        ("strip-history", "Remove template history", strip_history),
        ("git-init", "Initialize git repository", lambda: run_git(["init"], cwd=project_path)),
        ("remote", "Add origin remote", lambda: run_git(["remote", "add", "origin", repo_url], cwd=project_path)),
    ]

    for key, label, action in steps:
        if tracker:
            tracker.start(key)
        try:
            action()
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip()
            if tracker:
                tracker.error(key, f"exit code {e.returncode}")
            return Failure(
                FailureKind.WORKSPACE_SETUP_FAILED,
                f"{label} failed (git exit code {e.returncode}) in {project_path}",
                detail=detail,
            )
        except OSError as e:
            if tracker:
                tracker.error(key, str(e))
            return Failure(FailureKind.WORKSPACE_SETUP_FAILED, f"{label} failed: {e}")
        if tracker:
            tracker.complete(key)

    return Success(project_path)


def customize_manifest(project_path: Path, name: str, config: ScaffoldConfig) -> Result:
    """Write the project id into the manifest's name and figdata.id fields."""
    manifest_path = project_path / config.manifest_name
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Failure(FailureKind.MANIFEST_MISSING, f"{manifest_path} does not exist in the cloned template.")
    except UnicodeDecodeError as e:
        return Failure(FailureKind.MANIFEST_MALFORMED, f"{manifest_path} is not UTF-8 encoded.", detail=str(e))

    try:
        manifest = json.loads(raw)
    except json.JSONDecodeError as e:
        return Failure(
            FailureKind.MANIFEST_MALFORMED,
            f"{manifest_path} contains invalid JSON (line {e.lineno}, column {e.colno}).",
            detail=e.msg,
        )
    if not isinstance(manifest, dict):
        return Failure(FailureKind.MANIFEST_MALFORMED, f"{manifest_path} must contain a JSON object.")

    figdata = manifest.get("figdata")
    if not isinstance(figdata, dict):
        return Failure(FailureKind.MANIFEST_MALFORMED, f"{manifest_path} has no \"figdata\" object.")

    manifest["name"] = name
    figdata["id"] = name
    manifest_path.write_text(json.dumps(manifest, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return Success(manifest_path)


def scaffold_project(
    raw_name: str,
    config: ScaffoldConfig,
    client: httpx.Client,
    *,
    base_dir: Optional[Path] = None,
    grant_permission: Optional[str] = None,
    tracker: StepTracker | None = None,
) -> Result:
    """Run the whole scaffold and stop at the first failing step.

    Returns Success(ScaffoldOutcome) or the Failure of the step that failed.
    The remote repository is created before anything touches the disk.
    """
    if tracker is None:
        tracker = StepTracker("Create Figdata Project")
    for key, label in [
        ("validate", "Validate project id"),
        ("target", "Check target directory"),
        ("repo", "Create Bitbucket repository"),
        ("permissions", "Grant group permissions"),
        ("clone", "Clone template"),
        ("strip-history", "Remove template history"),
        ("git-init", "Initialize git repository"),
        ("remote", "Add origin remote"),
        ("manifest", "Customize package.json"),
        ("final", "Finalize"),
    ]:
        tracker.add(key, label)

    def fail(key: str, failure: Failure) -> Failure:
        if tracker.status(key) != "error":
            tracker.error(key, failure.title)
        tracker.error("final", failure.title)
        return failure

    tracker.start("validate")
    validated = validate_project_name(raw_name)
    if isinstance(validated, Failure):
        return fail("validate", validated)
    name = validated.value
    tracker.complete("validate", name)

    project_path = (base_dir or Path.cwd()) / name
    tracker.start("target")
    if project_path.exists():
        return fail("target", Failure(
            FailureKind.WORKSPACE_SETUP_FAILED,
            f"Directory '{name}' already exists in {project_path.parent}. "
            "Choose a different project id or remove the existing directory.",
        ))
    tracker.complete("target", str(project_path))

    tracker.start("repo", f"{config.workspace}/{name}")
    created = create_remote_repository(name, config, client)
    if isinstance(created, Failure):
        return fail("repo", created)
    repo_url = created.value.url
    tracker.complete("repo", repo_url)

    permission_status = None
    if grant_permission is None:
        tracker.skip("permissions", "not requested")
    else:
        tracker.start("permissions", config.group)
        granted = update_repository_permissions(name, grant_permission, config, client)
        if isinstance(granted, Failure):
            return fail("permissions", granted)
        permission_status = granted.value
        tracker.complete("permissions", f"{config.group} (HTTP {permission_status})")

    workspace = initialize_workspace(project_path, repo_url, config, tracker=tracker)
    if isinstance(workspace, Failure):
        return fail("final", workspace)

    tracker.start("manifest")
    customized = customize_manifest(project_path, name, config)
    if isinstance(customized, Failure):
        return fail("manifest", customized)
    tracker.complete("manifest", f"name and figdata.id = {name}")

    tracker.complete("final", "project ready")
    return Success(ScaffoldOutcome(
        name=name,
        project_path=project_path,
        repo_url=repo_url,
        permission_status=permission_status,
    ))


def get_key():
    """Get a single keypress in a cross-platform way using readchar."""
    key = readchar.readkey()

    if key == readchar.key.UP:
        return 'up'
    if key == readchar.key.DOWN:
        return 'down'
    if key == readchar.key.ENTER:
        return 'enter'
    if key == readchar.key.ESC:
        return 'escape'
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt

    return key


def select_with_arrows(options: dict, prompt_text: str = "Select an option", default_key: str = None) -> str:
    """
    Interactive selection using arrow keys with Rich Live display.

    Args:
        options: Dict with keys as option keys and values as descriptions
        prompt_text: Text to show above the options
        default_key: Default option key to start with

    Returns:
        Selected option key
    """
    option_keys = list(options.keys())
    if default_key and default_key in option_keys:
        selected_index = option_keys.index(default_key)
    else:
        selected_index = 0

    def create_selection_panel():
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan", justify="left", width=3)
        table.add_column(style="white", justify="left")

        for i, key in enumerate(option_keys):
            marker = "▶" if i == selected_index else " "
            table.add_row(marker, f"[cyan]{key}[/cyan] [dim]({options[key]})[/dim]")

        table.add_row("", "")
        table.add_row("", "[dim]Use ↑/↓ to navigate, Enter to select, Esc to cancel[/dim]")

        return Panel(
            table,
            title=f"[bold]{prompt_text}[/bold]",
            border_style="cyan",
            padding=(1, 2)
        )

    console.print()
    with Live(create_selection_panel(), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                console.print("\n[yellow]Selection cancelled[/yellow]")
                raise typer.Exit(1)
            if key == 'up':
                selected_index = (selected_index - 1) % len(option_keys)
            elif key == 'down':
                selected_index = (selected_index + 1) % len(option_keys)
            elif key == 'enter':
                return option_keys[selected_index]
            elif key == 'escape':
                console.print("\n[yellow]Selection cancelled[/yellow]")
                raise typer.Exit(1)

            live.update(create_selection_panel(), refresh=True)


console = Console()

app = typer.Typer(
    name=APP_NAME,
    help="Bootstrap a figdata project from the data-vite-scaffolder template",
    add_completion=False,
)


def show_banner():
    """Display the ASCII art banner."""
    banner_lines = BANNER.strip().split('\n')
    colors = ["bright_blue", "cyan", "bright_cyan"]

    styled_banner = Text()
    for i, line in enumerate(banner_lines):
        styled_banner.append(line + "\n", style=colors[i % len(colors)])

    console.print(Align.center(styled_banner))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


def choose_permission(permission: Optional[str] = None) -> str:
    """Use --permission when given, else ask on a TTY, else default to admin."""
    if permission:
        return permission
    if sys.stdin.isatty():
        return select_with_arrows(PERMISSION_CHOICES, "Choose the group permission:", "admin")
    return "admin"


def build_client(skip_tls: bool = False) -> httpx.Client:
    """Create the HTTP client used for the Bitbucket API."""
    return httpx.Client(verify=False if skip_tls else ssl_context)


def report_failure(failure: Failure, debug: bool = False) -> None:
    """Print a failure the same way whichever step produced it."""
    console.print(f"[red]Error:[/red] {escape(failure.title)}")
    console.print(Panel(
        escape(failure.message),
        title=f"[red]{escape(failure.title)}[/red]",
        border_style="red",
        padding=(1, 2),
    ))
    if debug:
        if failure.detail:
            console.print(Panel(escape(failure.detail), title="Detail", border_style="magenta"))
        _env_pairs = [
            ("Python", sys.version.split()[0]),
            ("Platform", sys.platform),
            ("CWD", str(Path.cwd())),
        ]
        _label_width = max(len(k) for k, _ in _env_pairs)
        env_lines = [f"{k.ljust(_label_width)} → [bright_black]{escape(v)}[/bright_black]" for k, v in _env_pairs]
        console.print(Panel("\n".join(env_lines), title="Debug Environment", border_style="magenta"))


@app.command()
def create(
    directory: str = typer.Option("figdata", "--dir", "-d", help="Target folder name (the project id is used as the folder name)"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Figdata project id; prompted for when omitted"),
    credentials: Optional[Path] = typer.Option(None, "--credentials", envvar=CREDENTIALS_ENVVAR, help=f"Path to the Bitbucket credentials JSON (default: ./{CREDENTIALS_FILENAME})"),
    grant_permissions: bool = typer.Option(False, "--grant-permissions", help=f"Also grant the {PERMISSION_GROUP} group access to the new repository"),
    permission: Optional[str] = typer.Option(None, "--permission", help="Group permission level: read, write or admin"),
    template: str = typer.Option(TEMPLATE_URL, "--template", help="Git URL of the template repository"),
    workspace: str = typer.Option(BITBUCKET_WORKSPACE, "--workspace", help="Bitbucket workspace owning the new repository"),
    project_key: str = typer.Option(PROJECT_KEY, "--project-key", help="Bitbucket project key of the new repository"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Timeout in seconds for Bitbucket API calls"),
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification (not recommended)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output for failures"),
):
    """
    Create a figdata project.

    This command will:
    1. Ask for the figdata project id
    2. Create a private repository for it on Bitbucket
    3. Optionally grant the datavis group access to it
    4. Clone the template, drop its history and point origin at the new repository
    5. Write the project id into package.json

    Examples:
        create-figdata
        create-figdata --name my-chart
        create-figdata --name my-chart --grant-permissions --permission admin
        create-figdata --credentials ~/bitbucket-credentials.json
    """
    show_banner()

    if name is None:
        name = typer.prompt("Figdata project id")

    grant_permission = choose_permission(permission) if grant_permissions else None

    config = ScaffoldConfig(
        workspace=workspace,
        project_key=project_key,
        template_url=template,
        credentials_path=credentials or default_credentials_path(),
        timeout=timeout,
    )

    setup_lines = [
        "[cyan]Figdata Project Setup[/cyan]",
        "",
        f"{'Project':<15} [green]{escape(name.strip())}[/green]",
        f"{'Working Path':<15} [dim]{escape(str(Path.cwd()))}[/dim]",
        f"{'Bitbucket':<15} [dim]{escape(config.workspace)} / {escape(config.project_key)}[/dim]",
        f"{'Template':<15} [dim]{escape(config.template_url)}[/dim]",
        f"{'Credentials':<15} [dim]{escape(str(config.credentials_path))}[/dim]",
    ]
    console.print(Panel("\n".join(setup_lines), border_style="cyan", padding=(1, 2)))

    tracker = StepTracker("Create Figdata Project")
    error = None
    with build_client(skip_tls) as client:
        with Live(tracker.render(), console=console, refresh_per_second=8, transient=True) as live:
            tracker.attach_refresh(lambda: live.update(tracker.render()))
            try:
                result = scaffold_project(
                    name,
                    config,
                    client,
                    grant_permission=grant_permission,
                    tracker=tracker,
                )
            except Exception as e:
                tracker.error("final", str(e))
                result = None
                error = e

    console.print(tracker.render())

    if result is None:
        console.print(Panel(f"Initialization failed: {escape(str(error))}", title="Failure", border_style="red"))
        raise typer.Exit(1)
    if isinstance(result, Failure):
        report_failure(result, debug=debug)
        raise typer.Exit(1)

    outcome = result.value
    console.print("\n[bold green]Project initialized and created on Bitbucket.[/bold green]")

    steps_lines = [
        f"1. Go to the project folder: [cyan]cd {escape(outcome.name)}[/cyan]",
        "2. Install dependencies: [cyan]npm install[/cyan]",
        "3. Commit the scaffold: [cyan]git add . && git commit -m \"Initial commit\"[/cyan]",
        "4. Push it: [cyan]git push -u origin HEAD[/cyan]",
        f"   Remote: [dim]{escape(outcome.repo_url)}[/dim]",
    ]
    console.print()
    console.print(Panel("\n".join(steps_lines), title="Next Steps", border_style="cyan", padding=(1, 2)))


def main():
    app()


if __name__ == "__main__":
    main()
