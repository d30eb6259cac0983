"""Tests for git extraction against a real temporary repository."""

import subprocess

import pytest

from commit_journal.exceptions import InvalidRepositoryError
from commit_journal.storage import CommitStore, MemoryStore
from commit_journal.temporal import GitDiffSource, GitExtractor, RepositoryCheckout, aggregate
from commit_journal.temporal.git_extractor import is_remote
from commit_journal.temporal.ingest import ingest


class TestIsRemote:
    @pytest.mark.parametrize(
        "repo",
        ["https://github.com/a/b", "git@github.com:a/b.git", "ssh://host/a.git", "file:///tmp/x"],
    )
    def test_urls(self, repo):
        assert is_remote(repo)

    @pytest.mark.parametrize("repo", [".", "/tmp/repo", "~/code/project"])
    def test_paths(self, repo):
        assert not is_remote(repo)


class TestRepositoryCheckout:
    def test_local_directory_used_in_place(self, tmp_path):
        checkout = RepositoryCheckout(tmp_path / "data")
        assert checkout.resolve(str(tmp_path)) == tmp_path.resolve()

    def test_missing_local_directory(self, tmp_path):
        checkout = RepositoryCheckout(tmp_path / "data")
        with pytest.raises(InvalidRepositoryError):
            checkout.resolve(str(tmp_path / "absent"))

    def test_checkout_path_is_stable_per_url(self, tmp_path):
        checkout = RepositoryCheckout(tmp_path)
        a = checkout.checkout_path("https://github.com/a/b")
        assert a == checkout.checkout_path("https://github.com/a/b")
        assert a != checkout.checkout_path("https://github.com/a/c")
        assert a.parent == tmp_path / "checkouts"


@pytest.mark.git
class TestGitExtractor:
    def test_extracts_oldest_first(self, git_repo):
        commits = GitExtractor(git_repo).extract()
        assert [c.message for c in commits] == ["add app", "update app", "tweak app"]
        assert commits[0].author == "Alice"
        assert commits[0].email == "alice@example.com"
        assert commits[0].date.startswith("2024-01-01")

    def test_file_changes_and_statuses(self, git_repo):
        first, second, _ = GitExtractor(git_repo).extract()
        assert [(f.path, f.status) for f in first.files] == [("app.py", "added")]
        statuses = {f.path: f.status for f in second.files}
        assert statuses == {"README.md": "added", "app.py": "modified"}
        app = next(f for f in second.files if f.path == "app.py")
        assert (app.additions, app.deletions) == (1, 1)

    def test_max_commits(self, git_repo):
        commits = GitExtractor(git_repo, max_commits=1).extract()
        assert [c.message for c in commits] == ["tweak app"]

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(InvalidRepositoryError):
            GitExtractor(tmp_path).extract()

    def test_aggregates_into_evolutions(self, git_repo):
        evolutions = aggregate(GitExtractor(git_repo).extract())
        assert [(e.path, e.change_count) for e in evolutions] == [("app.py", 3), ("README.md", 1)]


@pytest.mark.git
class TestGitDiffSource:
    def test_fetches_one_diff_per_hash(self, git_repo, tmp_path):
        commits = GitExtractor(git_repo).extract()
        hashes = [c.hash for c in commits]
        source = GitDiffSource(RepositoryCheckout(tmp_path / "data"))

        diffs = source.fetch_file_diffs(str(git_repo), "app.py", hashes)

        assert set(diffs) == set(hashes)
        assert "+print('v1')" in diffs[hashes[0]]
        assert "-print('v2')" in diffs[hashes[2]]
        assert "README" not in diffs[hashes[1]]

    def test_unknown_hash_maps_to_empty(self, git_repo, tmp_path):
        source = GitDiffSource(RepositoryCheckout(tmp_path / "data"))
        diffs = source.fetch_file_diffs(str(git_repo), "app.py", ["0" * 40])
        assert diffs == {"0" * 40: ""}

    def test_whole_commit_diff(self, git_repo, tmp_path):
        commits = GitExtractor(git_repo).extract()
        source = GitDiffSource(RepositoryCheckout(tmp_path / "data"))

        diff = source.fetch_commit_diff(str(git_repo), commits[1].hash)

        assert "+print('v2')" in diff
        assert "+# demo" in diff
        assert "update app" not in diff

    def test_unknown_commit_diff_is_empty(self, git_repo, tmp_path):
        source = GitDiffSource(RepositoryCheckout(tmp_path / "data"))
        assert source.fetch_commit_diff(str(git_repo), "0" * 40) == ""


@pytest.mark.git
class TestIngest:
    def test_fetch_then_reuse(self, git_repo, tmp_path):
        store = CommitStore(MemoryStore())
        checkout = RepositoryCheckout(tmp_path / "data")

        first = ingest(str(git_repo), store, checkout)
        assert not first.was_cached
        assert len(first.commits) == 3
        assert first.fetched_at is not None

        second = ingest(str(git_repo), store, checkout)
        assert second.was_cached
        assert [c.hash for c in second.commits] == [c.hash for c in first.commits]

    def test_refresh_reextracts(self, git_repo, tmp_path):
        store = CommitStore(MemoryStore())
        checkout = RepositoryCheckout(tmp_path / "data")
        ingest(str(git_repo), store, checkout)
        assert not ingest(str(git_repo), store, checkout, refresh=True).was_cached

    def test_empty_repository_fetches_again(self, tmp_path):
        repo = tmp_path / "empty"
        repo.mkdir()
        subprocess.run(["git", "init", "-q"], cwd=repo, check=True, capture_output=True)
        store = CommitStore(MemoryStore())
        checkout = RepositoryCheckout(tmp_path / "data")

        first = ingest(str(repo), store, checkout)
        second = ingest(str(repo), store, checkout)

        assert first.commits == []
        assert second.commits == []
        assert not second.was_cached


@pytest.mark.git
class TestNonAsciiPaths:
    @pytest.fixture
    def accented_repo(self, tmp_path):
        repo = tmp_path / "accented"
        repo.mkdir()

        def git(*args):
            subprocess.run(
                [
                    "git",
                    "-c", "user.name=Alice",
                    "-c", "user.email=alice@example.com",
                    "-c", "commit.gpgsign=false",
                    *args,
                ],
                cwd=repo,
                check=True,
                capture_output=True,
            )

        git("init", "-q")
        (repo / "café.py").write_text("print('bonjour')\n", encoding="utf-8")
        git("add", ".")
        git("commit", "-q", "-m", "add café")
        return repo

    def test_paths_are_not_quoted(self, accented_repo):
        (commit,) = GitExtractor(accented_repo).extract()
        assert [f.path for f in commit.files] == ["café.py"]
        assert [e.path for e in aggregate([commit])] == ["café.py"]

    def test_diff_found_for_accented_path(self, accented_repo, tmp_path):
        (commit,) = GitExtractor(accented_repo).extract()
        source = GitDiffSource(RepositoryCheckout(tmp_path / "data"))

        diffs = source.fetch_file_diffs(str(accented_repo), "café.py", [commit.hash])

        assert "+print('bonjour')" in diffs[commit.hash]
