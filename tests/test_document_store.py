"""Tests for the local and GitHub document stores."""

import asyncio
import base64
import json
from unittest.mock import patch

import httpx
import pytest

from racers_api.core.errors import UpstreamError, ValidationError, VersionConflictError
from racers_api.core.result import Failed, NotFound, Ok
from racers_api.services.document_store import GitHubDocumentStore, LocalDocumentStore


class TestLocalDocumentStore:
    """Tests for the directory-backed store."""

    @pytest.mark.asyncio
    async def test_put_then_get(self, tmp_path):
        store = LocalDocumentStore(tmp_path)
        version = await store.head()

        commit = await store.put({"pbs/1.json": {"userId": "1"}}, version, "add 1")

        assert commit.sha != version
        assert await store.head() == commit.sha
        result = await store.get("pbs/1.json")
        assert isinstance(result, Ok)
        assert result.value.content == {"userId": "1"}

    @pytest.mark.asyncio
    async def test_stale_version_is_rejected(self, tmp_path):
        """Two writers computed from the same version: only one wins."""
        store = LocalDocumentStore(tmp_path)
        version = await store.head()
        await store.put({"pbs/1.json": {"a": 1}}, version, "first")

        with pytest.raises(VersionConflictError):
            await store.put({"pbs/1.json": {"a": 2}}, version, "second")

        result = await store.get("pbs/1.json")
        assert result.value.content == {"a": 1}

    @pytest.mark.asyncio
    async def test_missing_and_invalid_documents(self, tmp_path):
        store = LocalDocumentStore(tmp_path)
        (tmp_path / "pbs").mkdir()
        (tmp_path / "pbs" / "bad.json").write_text("{not json", encoding="utf-8")

        assert isinstance(await store.get("pbs/none.json"), NotFound)
        assert isinstance(await store.get("pbs/bad.json"), Failed)

    @pytest.mark.asyncio
    async def test_bom_is_tolerated(self, tmp_path):
        store = LocalDocumentStore(tmp_path)
        (tmp_path / "doc.json").write_text("\ufeff{\"a\": 1}", encoding="utf-8")
        result = await store.get("doc.json")
        assert result.value.content == {"a": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["../escaped.json", "pbs/../../escaped.json", "/tmp/escaped.json"])
    async def test_keys_outside_root_are_rejected(self, tmp_path, key):
        root = tmp_path / "store"
        store = LocalDocumentStore(root)
        version = await store.head()

        with pytest.raises(ValidationError):
            await store.put({key: {"a": 1}}, version, "escape")
        with pytest.raises(ValidationError):
            await store.get(key)

        assert not (tmp_path / "escaped.json").exists()
        assert await store.head() == version

    @pytest.mark.asyncio
    async def test_list_keys(self, tmp_path):
        store = LocalDocumentStore(tmp_path)
        assert await store.list_keys("pbs") == []

        (tmp_path / "pbs").mkdir()
        for name in ("b.json", "a.json", "notes.txt"):
            (tmp_path / "pbs" / name).write_text("{}", encoding="utf-8")

        assert await store.list_keys("pbs") == ["pbs/a.json", "pbs/b.json"]

    @pytest.mark.asyncio
    async def test_file_io_runs_in_worker_threads(self, tmp_path):
        """Reads and writes do not block the event loop."""
        store = LocalDocumentStore(tmp_path)
        with patch(
            "racers_api.services.document_store.asyncio.to_thread", wraps=asyncio.to_thread
        ) as to_thread:
            await store.put({"pbs/1.json": {"a": 1}}, await store.head(), "add")
            result = await store.get("pbs/1.json")

        assert result.value.content == {"a": 1}
        assert to_thread.call_count == 2


def encoded(content) -> str:
    return base64.b64encode(json.dumps(content).encode("utf-8")).decode("ascii")


class FakeGitHub:
    """Minimal in-memory stand-in for the GitHub git data API."""

    def __init__(self, head: str = "c0"):
        self.head = head
        self.files = {"pbs/1.json": {"userId": "1"}}
        self.requests: list[httpx.Request] = []
        self.reject_ref_update = False
        self.fail_status = None
        self.truncated = False
        self.tree = [
            {"type": "blob", "path": "README.md"},
            {"type": "tree", "path": "pbs"},
            {"type": "blob", "path": "pbs/2.json"},
            {"type": "blob", "path": "pbs/1.json"},
            {"type": "blob", "path": "pbs/notes.md"},
            {"type": "tree", "path": "pbs/old"},
            {"type": "blob", "path": "pbs/old/3.json"},
            {"type": "blob", "path": "pbsx/4.json"},
            {"type": "blob", "path": "leaderboards/Impact_Hard.json"},
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/repos/owner/repo")
        if self.fail_status:
            return httpx.Response(self.fail_status, json={"message": "boom"})

        if request.method == "GET" and path == "/branches/main":
            return httpx.Response(200, json={"commit": {"sha": self.head}})
        if request.method == "GET" and path.startswith("/git/trees/"):
            return httpx.Response(
                200, json={"sha": "tree0", "tree": self.tree, "truncated": self.truncated}
            )
        if request.method == "GET" and path.startswith("/contents/"):
            key = path.removeprefix("/contents/")
            if key not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json={"content": encoded(self.files[key]), "sha": "blob"})
        if request.method == "GET" and path.startswith("/git/commits/"):
            return httpx.Response(200, json={"tree": {"sha": "tree0"}})
        if request.method == "POST" and path == "/git/blobs":
            return httpx.Response(201, json={"sha": f"blob{len(self.requests)}"})
        if request.method == "POST" and path == "/git/trees":
            return httpx.Response(201, json={"sha": "tree1"})
        if request.method == "POST" and path == "/git/commits":
            return httpx.Response(201, json={"sha": "c1"})
        if request.method == "PATCH" and path == "/git/refs/heads/main":
            if self.reject_ref_update:
                return httpx.Response(422, json={"message": "Update is not a fast forward"})
            self.head = json.loads(request.content)["sha"]
            return httpx.Response(200, json={"object": {"sha": self.head}})
        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def github_store(github) -> GitHubDocumentStore:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(github),
        base_url="https://api.github.test",
    )
    return GitHubDocumentStore(client, owner="owner", repo="repo", branch="main")


class TestGitHubDocumentStore:
    """Tests for the GitHub-backed store."""

    @pytest.mark.asyncio
    async def test_head_and_get(self, github_store):
        assert await github_store.head() == "c0"

        result = await github_store.get("pbs/1.json")
        assert isinstance(result, Ok)
        assert result.value.content == {"userId": "1"}
        assert isinstance(await github_store.get("pbs/9.json"), NotFound)

    @pytest.mark.asyncio
    async def test_list_keys_only_json_files(self, github, github_store):
        """Only JSON blobs directly under the prefix are listed."""
        assert await github_store.list_keys("pbs") == ["pbs/1.json", "pbs/2.json"]
        assert await github_store.list_keys("missing") == []

        request = github.requests[0]
        assert request.url.path.endswith("/git/trees/main")
        assert request.url.params["recursive"] == "1"

    @pytest.mark.asyncio
    async def test_list_keys_beyond_directory_listing_limit(self, github, github_store):
        github.tree = [
            {"type": "blob", "path": f"pbs/{i:05d}.json"} for i in range(2500)
        ]

        keys = await github_store.list_keys("pbs", ref="c0")

        assert len(keys) == 2500
        assert keys[0] == "pbs/00000.json"
        assert github.requests[0].url.path.endswith("/git/trees/c0")

    @pytest.mark.asyncio
    async def test_truncated_listing_is_an_error(self, github, github_store):
        """A partial listing must not pass for the full set of players."""
        github.truncated = True
        with pytest.raises(UpstreamError):
            await github_store.list_keys("pbs")

    @pytest.mark.asyncio
    async def test_put_creates_one_commit(self, github, github_store):
        commit = await github_store.put(
            {"pbs/1.json": {"a": 1}, "leaderboards/Impact_Hard.json": []},
            "c0",
            "Alice - 12.500s Impact Hard",
        )

        assert commit.sha == "c1"
        assert commit.url == "https://github.com/owner/repo/commit/c1"
        assert github.head == "c1"

        commit_request = next(
            r for r in github.requests
            if r.method == "POST" and r.url.path.endswith("/git/commits")
        )
        body = json.loads(commit_request.content)
        assert body["parents"] == ["c0"]
        assert body["message"] == "Alice - 12.500s Impact Hard"

        ref_request = github.requests[-1]
        assert json.loads(ref_request.content)["force"] is False

    @pytest.mark.asyncio
    async def test_rejected_ref_update_is_a_conflict(self, github, github_store):
        github.reject_ref_update = True
        with pytest.raises(VersionConflictError):
            await github_store.put({"pbs/1.json": {}}, "c0", "msg")
        assert github.head == "c0"

    @pytest.mark.asyncio
    async def test_server_errors(self, github, github_store):
        github.fail_status = 500
        with pytest.raises(UpstreamError):
            await github_store.head()
        assert isinstance(await github_store.get("pbs/1.json"), Failed)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="https://api.github.test",
        )
        store = GitHubDocumentStore(client, owner="owner", repo="repo")
        with pytest.raises(UpstreamError):
            await store.head()
