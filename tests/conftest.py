"""Shared fixtures: synthetic git log output, model files and real repositories."""

import json
from pathlib import Path

import pytest
from git import Actor, Repo

SHA_A = "a" * 40
SHA_B = "b" * 40

# Two commits touching src/parser.py: alice fixes it, bob adds a feature.
TWO_COMMIT_LOG = f"""\
{SHA_B}|bob@example.com|1700086400|add feature

20\t0\tsrc/parser.py
{SHA_A}|alice@example.com|1700000000|fix parser

10\t5\tsrc/parser.py
"""

SINGLE_SPLIT_NODES = [
    {"nodeid": 0, "split": 0, "split_condition": 50, "yes": 1, "no": 2},
    {"nodeid": 1, "leaf": 0.1},
    {"nodeid": 2, "leaf": -0.1},
]

SINGLE_SPLIT_ARRAYS = {
    "left_children": [1, -1, -1],
    "right_children": [2, -1, -1],
    "split_indices": [0, 0, 0],
    "split_conditions": [50.0, 0.1, -0.1],
    "base_weights": [0.0, 0.1, -0.1],
}

THRESHOLDS = {"no_risk": 0.22, "low_risk": 0.47, "medium_risk": 0.65, "high_risk": 1.0}


def write_json(path: Path, data) -> str:
    path.write_text(json.dumps(data))
    return str(path)


@pytest.fixture
def single_split_model(tmp_path):
    """One-feature model: churn < 50 adds 0.1, otherwise subtracts 0.1."""
    return write_json(tmp_path / "single.json", {
        "base_score": 0.0,
        "feature_names": ["churn"],
        "trees": [{"tree": SINGLE_SPLIT_NODES}],
        "risk_thresholds": THRESHOLDS,
    })


@pytest.fixture
def zero_tree_model(tmp_path):
    return write_json(tmp_path / "baseline.json", {
        "base_score": 0.0,
        "trees": [],
        "risk_thresholds": THRESHOLDS,
    })


class RepoBuilder:
    """Creates commits in a throwaway repository with explicit authors."""

    def __init__(self, root: Path):
        self.repo = Repo.init(root)
        self.root = root

    def commit(self, message, author, files=None, deleted=None):
        for name, content in (files or {}).items():
            path = self.root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        if files:
            self.repo.index.add(list(files))
        if deleted:
            self.repo.index.remove(list(deleted), working_tree=True)
        actor = Actor(author, f"{author}@example.com")
        return self.repo.index.commit(message, author=actor, committer=actor)


@pytest.fixture
def repo_builder(tmp_path):
    return RepoBuilder(tmp_path / "repo")


@pytest.fixture
def sample_repo(repo_builder):
    """main: alice adds parser.py + README, bob fixes parser.py."""
    repo_builder.commit(
        "add parser",
        "alice",
        files={"src/parser.py": "a\n" * 10, "README.md": "# sample\n"},
    )
    repo_builder.repo.git.branch("-M", "main")
    repo_builder.commit(
        "fix parser crash",
        "bob",
        files={"src/parser.py": "a\n" * 8 + "b\n" * 4},
    )
    return repo_builder
