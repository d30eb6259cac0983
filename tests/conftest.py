"""Shared test fixtures for Commit Journal."""

import os
import shutil
import subprocess

import pytest

from commit_journal.evolution import (
    ArchitecturalLesson,
    EvolutionOrchestrator,
    JourneyVerdict,
    NamedPiece,
    Synthesis,
    TokenUsage,
)
from commit_journal.journal import ArchitecturalCallout, CommitAnalysis
from commit_journal.storage import (
    CommitAnalysisStore,
    CommitStore,
    EvolutionResultStore,
    MemoryStore,
    SnapshotCache,
)
from commit_journal.temporal import Commit, FileChange

REPO = "https://github.com/acme/widgets"


def pytest_configure(config):
    """Register the git marker."""
    config.addinivalue_line("markers", "git: needs a git executable on PATH")


def pytest_collection_modifyitems(config, items):
    """Skip git tests when git is not installed."""
    if shutil.which("git"):
        return
    skip_git = pytest.mark.skip(reason="git executable not found")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip_git)


def build_commit(sha, date, *paths, author="alice", message=None):
    return Commit(
        hash=sha,
        author=author,
        date=date,
        message=message or f"change {sha}",
        files=tuple(FileChange(path=p, additions=3, deletions=1) for p in paths),
    )


@pytest.fixture
def make_commit():
    """Factory: make_commit(sha, date, *paths, author=..., message=...)."""
    return build_commit


@pytest.fixture
def history():
    """Three commits: x.py changed three times, y.py and z.py once each."""
    return [
        build_commit("c1", "2024-01-01T10:00:00Z", "x.py", "y.py", message="initial"),
        build_commit("c2", "2024-01-02T10:00:00Z", "x.py", author="bob", message="refactor x"),
        build_commit("c3", "2024-01-03T10:00:00Z", "x.py", "z.py", message="add z"),
    ]


class FakeDiffSource:
    """Diff source that records every batch request."""

    def __init__(self):
        self.calls = []
        self.commit_calls = []

    def fetch_file_diffs(self, repo, path, hashes):
        self.calls.append((repo, path, list(hashes)))
        return {h: f"diff of {path} at {h}" for h in hashes}

    def fetch_commit_diff(self, repo, commit_hash):
        self.commit_calls.append((repo, commit_hash))
        return f"diff of commit {commit_hash}"


class FakeJourneyOracle:
    """Journey oracle returning canned verdicts; ``errors`` maps path to exception."""

    def __init__(self):
        self.calls = []
        self.verdicts = {}
        self.errors = {}

    def analyze(self, path, snapshots, context, model_id):
        self.calls.append(
            {"path": path, "snapshots": list(snapshots), "context": context, "model_id": model_id}
        )
        if path in self.errors:
            raise self.errors[path]
        if path in self.verdicts:
            return self.verdicts[path]
        return JourneyVerdict(
            path=path,
            description=f"{path} description",
            is_hotspot=False,
            reinforcement=None,
            tokens=TokenUsage(input_tokens=10, output_tokens=5),
        )


class FakeSynthesisOracle:
    def __init__(self):
        self.calls = []
        self.error = None
        self.result = Synthesis(
            summary="Widgets grew from a single module",
            named_pieces=[NamedPiece(name="Core", description="x and y", files=("x.py", "y.py"))],
            architectural_lessons=[
                ArchitecturalLesson(title="Low one", lesson="minor", impact="low"),
                ArchitecturalLesson(title="High one", lesson="major", impact="high"),
                ArchitecturalLesson(title="Medium one", lesson="some", impact="medium"),
            ],
            tokens=TokenUsage(input_tokens=100, output_tokens=50),
        )

    def synthesize(self, repo, verdicts, model_id):
        self.calls.append({"repo": repo, "verdicts": list(verdicts), "model_id": model_id})
        if self.error is not None:
            raise self.error
        return self.result


class FakeCommitOracle:
    """Commit oracle writing a canned entry; ``error`` is raised when set."""

    def __init__(self):
        self.calls = []
        self.error = None

    def analyze_commit(self, repo, commit, diff, prompt, model_id):
        self.calls.append(
            {
                "repo": repo,
                "commit": commit.hash,
                "diff": diff,
                "prompt": prompt.id,
                "model_id": model_id,
            }
        )
        if self.error is not None:
            raise self.error
        return CommitAnalysis(
            repo=repo,
            commit_hash=commit.hash,
            model_id=model_id,
            prompt_id=prompt.id,
            summary=f"Journal for {commit.message}",
            key_decisions=["keep x small"],
            callouts=[ArchitecturalCallout("pattern-used", "Facade", "x hides y")],
            duration_ms=12,
            tokens=TokenUsage(input_tokens=40, output_tokens=20),
        )


@pytest.fixture
def backend():
    with MemoryStore() as store:
        yield store


@pytest.fixture
def commit_store(backend):
    return CommitStore(backend)


@pytest.fixture
def snapshot_cache(backend):
    return SnapshotCache(backend)


@pytest.fixture
def result_store(backend):
    return EvolutionResultStore(backend)


@pytest.fixture
def diff_source():
    return FakeDiffSource()


@pytest.fixture
def journey_oracle():
    return FakeJourneyOracle()


@pytest.fixture
def synthesis_oracle():
    return FakeSynthesisOracle()


@pytest.fixture
def commit_oracle():
    return FakeCommitOracle()


@pytest.fixture
def commit_analysis_store(backend):
    return CommitAnalysisStore(backend)


@pytest.fixture
def make_orchestrator(
    commit_store, snapshot_cache, result_store, diff_source, journey_oracle, synthesis_oracle
):
    """Factory building an orchestrator over the shared in-memory fakes."""

    def factory(**kwargs):
        kwargs.setdefault("model_id", "test-model")
        return EvolutionOrchestrator(
            commits=commit_store,
            snapshots=snapshot_cache,
            diffs=diff_source,
            journey_oracle=journey_oracle,
            synthesis_oracle=synthesis_oracle,
            results=result_store,
            **kwargs,
        )

    return factory


@pytest.fixture
def fetched(commit_store, history):
    """Store the three-commit history under REPO."""
    commit_store.put(REPO, history)
    return history


@pytest.fixture
def git_repo(tmp_path):
    """A real repository: app.py changed three times, README.md once."""
    repo = tmp_path / "repo"
    repo.mkdir()

    def git(*args, date="2024-01-01T12:00:00+00:00"):
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
            env={**os.environ, "GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date},
        )

    git("init", "-q")
    (repo / "app.py").write_text("print('v1')\n")
    git("add", ".")
    git("commit", "-q", "-m", "add app", date="2024-01-01T12:00:00+00:00")
    (repo / "app.py").write_text("print('v2')\n")
    (repo / "README.md").write_text("# demo\n")
    git("add", ".")
    git("commit", "-q", "-m", "update app", date="2024-01-02T12:00:00+00:00")
    (repo / "app.py").write_text("print('v3')\n")
    git("commit", "-q", "-am", "tweak app", date="2024-01-03T12:00:00+00:00")
    return repo


@pytest.fixture
def service(tmp_path, backend, diff_source, journey_oracle, synthesis_oracle, commit_oracle):
    """EvolutionService over the in-memory backend and fake collaborators."""
    from commit_journal.config import JournalConfig
    from commit_journal.service import EvolutionService
    from commit_journal.temporal import RepositoryCheckout

    config = JournalConfig(data_dir=str(tmp_path / "data"), store_backend="memory", model_id="test-model")
    with EvolutionService(
        config,
        backend,
        RepositoryCheckout(config.data_path),
        journey_oracle=journey_oracle,
        synthesis_oracle=synthesis_oracle,
        commit_oracle=commit_oracle,
        diffs=diff_source,
    ) as svc:
        yield svc
