from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import create_figdata  # noqa: E402

TEMPLATE_MANIFEST = {
    "name": "old",
    "version": "0.0.0",
    "private": True,
    "scripts": {"dev": "vite", "build": "vite build"},
    "figdata": {"id": "old", "width": 640, "tags": ["datavis"]},
    "devDependencies": {"vite": "^5.0.0"},
}


class FakeGit:
    """Stands in for the git binary; clone lays down a minimal template checkout."""

    def __init__(self, manifest: dict | str | None = TEMPLATE_MANIFEST, fail_on: str | None = None):
        self.calls: list[tuple[list[str], Path | None]] = []
        self.manifest = manifest
        self.fail_on = fail_on

    def __call__(self, args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess:
        self.calls.append((list(args), cwd))
        if args[0] == self.fail_on:
            raise subprocess.CalledProcessError(128, ["git", *args], output="", stderr=f"fatal: {args[0]} failed")
        if args[0] == "clone":
            target = Path(args[-1])
            (target / ".git" / "objects").mkdir(parents=True)
            (target / "index.html").write_text("<div id=app></div>", encoding="utf-8")
            if isinstance(self.manifest, dict):
                (target / "package.json").write_text(json.dumps(self.manifest, indent=2), encoding="utf-8")
            elif isinstance(self.manifest, str):
                (target / "package.json").write_text(self.manifest, encoding="utf-8")
        elif args[0] == "init":
            (cwd / ".git").mkdir()
        return subprocess.CompletedProcess(["git", *args], 0, stdout="", stderr="")

    @property
    def commands(self) -> list[list[str]]:
        return [args for args, _ in self.calls]


class BitbucketStub:
    """MockTransport handler recording requests; repositories can only be created once."""

    def __init__(self, create_status: int = 200, create_body: dict | None = None, permission_status: int = 200):
        self.requests: list[httpx.Request] = []
        self.create_status = create_status
        self.create_body = create_body
        self.permission_status = permission_status
        self.created: set[str] = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/")
        if request.method == "POST":
            slug = parts[-1]
            if self.create_status >= 400:
                return httpx.Response(self.create_status, json=self.create_body or {})
            if slug in self.created:
                return httpx.Response(
                    400,
                    json={"type": "error", "error": {"message": "Slug already exists"}},
                )
            self.created.add(slug)
            body = self.create_body or {
                "slug": slug,
                "links": {"html": {"href": f"https://bitbucket.org/lefigaro/{slug}"}},
            }
            return httpx.Response(self.create_status, json=body)
        if request.method == "PUT":
            if self.permission_status >= 400:
                return httpx.Response(
                    self.permission_status,
                    json={"type": "error", "error": {"message": "Group not found"}},
                )
            return httpx.Response(self.permission_status, json={"permission": "admin"})
        return httpx.Response(405)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(create_figdata.CREDENTIALS_ENVVAR, raising=False)


@pytest.fixture()
def credentials_file(tmp_path: Path) -> Path:
    path = tmp_path / "bitbucket-credentials.json"
    path.write_text(json.dumps({"username": "jdoe", "token": "s3cret"}), encoding="utf-8")
    return path


@pytest.fixture()
def config(credentials_file: Path) -> create_figdata.ScaffoldConfig:
    return create_figdata.ScaffoldConfig(credentials_path=credentials_file)


@pytest.fixture()
def fake_git(monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    fake = FakeGit()
    monkeypatch.setattr(create_figdata, "run_git", fake)
    return fake


@pytest.fixture()
def bitbucket() -> BitbucketStub:
    return BitbucketStub()


@pytest.fixture()
def template_manifest() -> dict:
    return json.loads(json.dumps(TEMPLATE_MANIFEST))
