"""
Sideloader Source Probes

Compare an installed plugin's checkout with its upstream. A probe answers
for exactly one plugin folder, is safe to run concurrently for different
folders and never retries.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Optional

import httpx

from sideloader.core.records import ProbeFailure, ProbeResult, ProbeSuccess
from sideloader.exceptions import ProbeError
from sideloader.obs import logger
from sideloader.plugins.loader import DEFAULT_PLUGINS_DIR
from sideloader.version import __version__


GITHUB_API_URL = "https://api.github.com"
USER_AGENT = f"Sideloader/{__version__}"
REQUEST_TIMEOUT = 15.0

GITHUB_REPO_PATTERN = re.compile(
    r'github\.com[:/](?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$'
)


def parse_github_repo(url: str) -> Optional[tuple[str, str]]:
    """Extract (owner, repo) from a GitHub https or ssh remote URL."""
    match = GITHUB_REPO_PATTERN.search(url.strip())
    if match is None:
        return None
    return match.group("owner"), match.group("repo")


class GitSourceProbe:
    """
    Probe backed by the git command line.

    Fetches the tracked remote, then compares HEAD with its upstream branch.
    The reported revision is the installed HEAD.
    """

    def __init__(self, plugins_dir: Path = DEFAULT_PLUGINS_DIR, git: str = "git"):
        self.plugins_dir = plugins_dir
        self.git = git

    async def _git(self, folder: Path, *args: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                self.git, *args,
                cwd=folder,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProbeError(folder.name, f"could not run git: {e}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
            raise ProbeError(folder.name, f"git {args[0]} failed: {message}")

        return stdout.decode(errors="replace").strip()

    async def local_revision(self, folder: Path) -> str:
        return await self._git(folder, "rev-parse", "HEAD")

    async def remote_revision(self, folder: Path) -> str:
        await self._git(folder, "fetch", "--quiet")
        return await self._git(folder, "rev-parse", "@{u}")

    async def probe(self, folder_name: str) -> ProbeResult:
        folder = self.plugins_dir / folder_name
        if not (folder / ".git").exists():
            return ProbeFailure(reason=f"{folder} is not a git checkout")

        try:
            local = await self.local_revision(folder)
            remote = await self.remote_revision(folder)
        except ProbeError as e:
            return ProbeFailure(reason=e.reason)

        needs_update = local != remote
        if needs_update:
            logger.debug(f"{folder_name}: {local[:7]} -> {remote[:7]}")
        return ProbeSuccess(needs_update=needs_update, revision=local)


class GitHubSourceProbe(GitSourceProbe):
    """
    Probe that asks the GitHub API for the upstream revision.

    Avoids a full fetch; the local HEAD still comes from git.
    """

    def __init__(
        self,
        plugins_dir: Path = DEFAULT_PLUGINS_DIR,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        git: str = "git",
    ):
        super().__init__(plugins_dir=plugins_dir, git=git)
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.transport = transport

    def _headers(self) -> dict:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def remote_revision(self, folder: Path) -> str:
        remote_url = await self._git(folder, "config", "--get", "remote.origin.url")
        repo = parse_github_repo(remote_url)
        if repo is None:
            raise ProbeError(folder.name, f"not a GitHub remote: {remote_url}")

        owner, name = repo
        url = f"{self.api_url}/repos/{owner}/{name}/commits/HEAD"
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport) as client:
                response = await client.get(url, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise ProbeError(folder.name, f"GitHub request failed: {e}") from e
        except ValueError as e:
            raise ProbeError(folder.name, f"invalid GitHub response: {e}") from e

        sha = data.get("sha") if isinstance(data, dict) else None
        if not sha:
            raise ProbeError(folder.name, "GitHub response has no commit sha")
        return sha


def create_probe(backend: str, plugins_dir: Path, token: Optional[str] = None) -> GitSourceProbe:
    if backend == "github":
        return GitHubSourceProbe(plugins_dir=plugins_dir, token=token)
    return GitSourceProbe(plugins_dir=plugins_dir)
