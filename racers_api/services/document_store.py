"""JSON document storage backed by a git repository.

Player records and leaderboard snapshots live as JSON files in a GitHub
repository. Every write is a single commit on the configured branch and is
conditional on the branch head it was computed from, so two racing writers
cannot silently overwrite each other.
"""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

import httpx

from racers_api.config import Settings
from racers_api.core.errors import UpstreamError, ValidationError, VersionConflictError
from racers_api.core.result import Failed, NotFound, Ok, Result

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """A JSON document read from the store."""

    key: str
    content: Any
    sha: Optional[str] = None


@dataclass
class CommitInfo:
    """A successful write."""

    sha: str
    url: Optional[str] = None


def dump_document(content: Any) -> str:
    """Serialize a document the way it is committed."""
    return json.dumps(content, indent=2, ensure_ascii=False)


def load_document(text: str) -> Any:
    """Parse a stored document, tolerating a UTF-8 byte order mark."""
    return json.loads(text.lstrip("\ufeff"))


class DocumentStore(Protocol):
    """Versioned key -> JSON document storage."""

    async def head(self) -> str:
        """Current version of the whole store."""
        ...

    async def get(self, key: str, ref: Optional[str] = None) -> Result[Document]:
        ...

    async def list_keys(self, prefix: str, ref: Optional[str] = None) -> list[str]:
        """JSON document keys directly under prefix, sorted."""
        ...

    async def put(
        self,
        changes: dict[str, Any],
        expected_version: str,
        message: str,
    ) -> CommitInfo:
        """Write all changes at once.

        Raises:
            VersionConflictError: If the store moved past expected_version
        """
        ...


class GitHubDocumentStore:
    """Document store on top of the GitHub REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        owner: str,
        repo: str,
        branch: str = "main",
    ):
        self._client = client
        self.owner = owner
        self.repo = repo
        self.branch = branch

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitHubDocumentStore":
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if settings.github_token:
            headers["Authorization"] = f"Bearer {settings.github_token}"
        client = httpx.AsyncClient(
            base_url=settings.github_api_url,
            headers=headers,
            timeout=settings.http_timeout_seconds,
        )
        return cls(
            client,
            owner=settings.github_repo_owner,
            repo=settings.github_repo_name,
            branch=settings.github_branch,
        )

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, f"{self._repo_path}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"GitHub request failed: {method} {path}: {e}")
            raise UpstreamError("Document store unavailable", details=str(e)) from e

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        response = await self._request(method, path, **kwargs)
        if response.is_error:
            logger.error(
                f"GitHub {method} {path} responded with status {response.status_code}"
            )
            raise UpstreamError(
                f"Document store responded with status {response.status_code}",
                details=response.text,
            )
        return response.json()

    async def head(self) -> str:
        data = await self._json("GET", f"/branches/{self.branch}")
        try:
            return data["commit"]["sha"]
        except (KeyError, TypeError) as e:
            raise UpstreamError("Unexpected branch response from document store") from e

    async def get(self, key: str, ref: Optional[str] = None) -> Result[Document]:
        try:
            response = await self._request(
                "GET", f"/contents/{key}", params={"ref": ref or self.branch}
            )
        except UpstreamError as e:
            return Failed(e.message)

        if response.status_code == 404:
            return NotFound(f"{key} not found")
        if response.is_error:
            return Failed(f"GitHub responded with status {response.status_code}")

        try:
            data = response.json()
            text = base64.b64decode(data["content"]).decode("utf-8")
            return Ok(Document(key=key, content=load_document(text), sha=data.get("sha")))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid document {key}: {e}")
            return Failed(f"Invalid document {key}: {e}")

    async def list_keys(self, prefix: str, ref: Optional[str] = None) -> list[str]:
        # The contents API stops at 1,000 entries per directory; the tree API does not.
        data = await self._json(
            "GET", f"/git/trees/{ref or self.branch}", params={"recursive": "1"}
        )
        if data.get("truncated"):
            logger.error(f"Tree listing for {prefix} was truncated by GitHub")
            raise UpstreamError("Document store listing is incomplete")

        directory = prefix.rstrip("/") + "/"
        return sorted(
            item["path"]
            for item in data.get("tree") or []
            if item.get("type") == "blob"
            and item.get("path", "").startswith(directory)
            and "/" not in item["path"][len(directory):]
            and item["path"].endswith(".json")
        )

    async def put(
        self,
        changes: dict[str, Any],
        expected_version: str,
        message: str,
    ) -> CommitInfo:
        if not changes:
            raise ValueError("Nothing to commit")

        base_commit = await self._json("GET", f"/git/commits/{expected_version}")

        async def create_blob(key: str, content: Any) -> dict:
            blob = await self._json(
                "POST",
                "/git/blobs",
                json={"content": dump_document(content), "encoding": "utf-8"},
            )
            return {"path": key, "mode": "100644", "type": "blob", "sha": blob["sha"]}

        tree_items = await asyncio.gather(
            *(create_blob(key, content) for key, content in changes.items())
        )

        tree = await self._json(
            "POST",
            "/git/trees",
            json={"base_tree": base_commit["tree"]["sha"], "tree": list(tree_items)},
        )
        commit = await self._json(
            "POST",
            "/git/commits",
            json={"message": message, "tree": tree["sha"], "parents": [expected_version]},
        )

        response = await self._request(
            "PATCH",
            f"/git/refs/heads/{self.branch}",
            json={"sha": commit["sha"], "force": False},
        )
        if response.status_code in (409, 422):
            logger.warning(
                f"Branch {self.branch} moved past {expected_version[:7]}; commit rejected"
            )
            raise VersionConflictError("Document store changed during update")
        if response.is_error:
            raise UpstreamError(
                f"Document store responded with status {response.status_code}",
                details=response.text,
            )

        return CommitInfo(
            sha=commit["sha"],
            url=f"https://github.com/{self.owner}/{self.repo}/commit/{commit['sha']}",
        )


class LocalDocumentStore:
    """Document store on a local directory.

    The version is an in-process revision counter, so conditional writes are
    only meaningful within a single process. File I/O runs in worker threads.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._revision = 0
        self._lock = asyncio.Lock()

    async def aclose(self) -> None:
        return None

    def _path(self, key: str) -> Path:
        """Filesystem path of a key, which must stay under the root."""
        root = self.root.resolve()
        path = (root / key).resolve()
        if not path.is_relative_to(root) or path == root:
            raise ValidationError("Invalid document key", details=key)
        return path

    async def head(self) -> str:
        return str(self._revision)

    async def get(self, key: str, ref: Optional[str] = None) -> Result[Document]:
        path = self._path(key)
        if not path.is_file():
            return NotFound(f"{key} not found")
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            return Ok(Document(key=key, content=load_document(text)))
        except (OSError, ValueError) as e:
            logger.error(f"Invalid document {key}: {e}")
            return Failed(f"Invalid document {key}: {e}")

    async def list_keys(self, prefix: str, ref: Optional[str] = None) -> list[str]:
        directory = self._path(prefix)
        if not directory.is_dir():
            return []
        return sorted(
            f"{prefix}/{path.name}" for path in directory.iterdir()
            if path.is_file() and path.suffix == ".json"
        )

    @staticmethod
    def _write_all(files: list[tuple[Path, str]]) -> None:
        for path, text in files:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(path)

    async def put(
        self,
        changes: dict[str, Any],
        expected_version: str,
        message: str,
    ) -> CommitInfo:
        if not changes:
            raise ValueError("Nothing to commit")
        files = [(self._path(key), dump_document(content)) for key, content in changes.items()]

        async with self._lock:
            if expected_version != str(self._revision):
                raise VersionConflictError("Document store changed during update")

            await asyncio.to_thread(self._write_all, files)

            self._revision += 1
            logger.info(f"Local commit r{self._revision}: {message}")
            return CommitInfo(sha=str(self._revision))


def create_document_store(settings: Settings) -> DocumentStore:
    """Build the configured document store."""
    if settings.store_backend == "github":
        return GitHubDocumentStore.from_settings(settings)
    return LocalDocumentStore(settings.data_dir)
