"""Tests for git history parsing and aggregation."""

from datetime import datetime, timezone

import pytest

from maintsight.errors import (
    BranchNotFoundError,
    GitCommandFailedError,
    InvalidRepositoryError,
    MaintSightError,
    RepositoryNotFoundError,
)
from maintsight.models import CommitRecord, FileStats
from maintsight.services.git_commit_collector import (
    GitCommitCollector,
    is_source_file,
    parse_log,
    parse_rename,
)

from conftest import SHA_A, SHA_B, TWO_COMMIT_LOG


def _commit(author, ts, message):
    return CommitRecord(author=author, timestamp=datetime.fromtimestamp(ts, tz=timezone.utc), message=message)


class TestParseLog:
    def test_two_commits_aggregate_into_one_file(self):
        stats = parse_log(TWO_COMMIT_LOG)

        assert list(stats) == ["src/parser.py"]
        parser = stats["src/parser.py"]
        assert parser.lines_added == 30
        assert parser.lines_removed == 5
        assert parser.commits == 2
        assert parser.num_authors == 2
        assert parser.bug_commits == 1
        assert parser.feature_commits == 1
        assert parser.refactor_commits == 0
        assert parser.first_commit == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert parser.last_commit == datetime.fromtimestamp(1700086400, tz=timezone.utc)

    def test_stat_lines_inherit_the_current_commit(self):
        log = (
            f"{SHA_A}|carol@example.com|1700000000|refactor and fix imports\n"
            "\n"
            "3\t1\tpkg/a.py\n"
            "7\t2\tpkg/b.go\n"
        )
        stats = parse_log(log)

        for path in ("pkg/a.py", "pkg/b.go"):
            assert stats[path].authors == {"carol@example.com"}
            assert stats[path].bug_commits == 1
            assert stats[path].refactor_commits == 1
            assert stats[path].feature_commits == 0

    def test_binary_markers_are_skipped(self):
        log = (
            f"{SHA_A}|alice@example.com|1700000000|add logo\n"
            "-\t-\tassets/logo.py\n"
            "4\t0\tsrc/app.py\n"
        )
        stats = parse_log(log)
        assert list(stats) == ["src/app.py"]

    def test_malformed_lines_do_not_abort_the_parse(self):
        log = (
            "garbage line\n"
            "12\t3\tsrc/orphan.py\n"  # stat before any header
            f"{SHA_A}|alice@example.com|1700000000|initial\n"
            "not\ta\tnumstat.py\n"
            "x|y|z\n"
            "5\t5\tsrc/ok.py\n"
        )
        stats = parse_log(log)
        assert list(stats) == ["src/ok.py"]
        assert stats["src/ok.py"].commits == 1

    def test_non_source_files_are_excluded(self):
        log = (
            f"{SHA_A}|alice@example.com|1700000000|docs\n"
            "10\t0\tREADME.md\n"
            "3\t0\tconfig.yml\n"
            "1\t0\timage.png\n"
            "2\t1\tsrc/main.rs\n"
        )
        assert list(parse_log(log)) == ["src/main.rs"]

    def test_renamed_paths_are_tracked_under_their_new_name(self):
        log = (
            f"{SHA_A}|alice@example.com|1700000000|move module\n"
            "1\t1\tsrc/{old => new}/util.py\n"
            "2\t0\tlegacy.py => modern.py\n"
        )
        assert set(parse_log(log)) == {"src/new/util.py", "modern.py"}

    def test_empty_output_gives_empty_mapping(self):
        assert parse_log("") == {}

    def test_accepts_an_iterable_of_lines(self):
        stats = parse_log(iter(TWO_COMMIT_LOG.splitlines()))
        assert stats["src/parser.py"].commits == 2

    def test_consumes_a_generator_lazily(self):
        consumed = []

        def lines():
            for line in TWO_COMMIT_LOG.splitlines(keepends=True):
                consumed.append(line)
                yield line

        stats = parse_log(lines())
        assert stats["src/parser.py"].lines_added == 30
        assert consumed == TWO_COMMIT_LOG.splitlines(keepends=True)

    def test_custom_path_filter(self):
        stats = parse_log(TWO_COMMIT_LOG, path_filter=lambda path: False)
        assert stats == {}

    def test_pipes_in_commit_message_are_kept(self):
        log = f"{SHA_B}|dave@example.com|1700000000|fix a | b parsing\n1\t0\tx.py\n"
        stats = parse_log(log)
        assert stats["x.py"].bug_commits == 1


class TestFileStats:
    def test_folding_is_order_independent(self):
        a = _commit("alice", 1700000000, "fix parser")
        b = _commit("bob", 1700500000, "add feature")

        forward = FileStats.first_seen("f.py", a)
        forward.record(a, 10, 5)
        forward.record(b, 20, 0)

        backward = FileStats.first_seen("f.py", b)
        backward.record(b, 20, 0)
        backward.record(a, 10, 5)

        assert forward == backward

    def test_first_commit_never_after_last_commit(self):
        late = _commit("a", 1700500000, "x")
        early = _commit("b", 1700000000, "y")
        stats = FileStats.first_seen("f.py", late)
        stats.record(late, 1, 0)
        stats.record(early, 1, 0)
        assert stats.first_commit <= stats.last_commit
        assert stats.first_commit == early.timestamp

    def test_negative_counts_rejected(self):
        commit = _commit("a", 1700000000, "x")
        stats = FileStats.first_seen("f.py", commit)
        with pytest.raises(ValueError):
            stats.record(commit, -1, 0)


class TestCommitRecord:
    @pytest.mark.parametrize("message,expected", [
        ("Fix crash on empty input", ["bug_fix"]),
        ("HOTFIX: login", ["bug_fix"]),
        ("feat: add exporter", ["feature"]),
        ("Refactor and improve cache", ["refactor"]),
        ("Implement retry, fix timeout", ["bug_fix", "feature"]),
        ("bump version", []),
    ])
    def test_categories(self, message, expected):
        assert _commit("a", 0, message).categories == expected

    def test_holds_only_header_context(self):
        commit = _commit("a", 0, "fix")
        assert set(vars(commit)) == {"author", "timestamp", "message", "is_bug_fix", "is_feature", "is_refactor"}


class TestHelpers:
    def test_is_source_file(self):
        assert is_source_file("src/App.TSX")
        assert is_source_file("lib/core.go")
        assert not is_source_file("docs/index.md")
        assert not is_source_file("Makefile")

    @pytest.mark.parametrize("raw,expected", [
        ("src/a.py", "src/a.py"),
        ("{a.py => b.py}", "b.py"),
        ("src/{ => lib}/a.py", "src/lib/a.py"),
        ("src/{lib => }/a.py", "src/a.py"),
        ("old.py => new.py", "new.py"),
        ("/dev/null", None),
        ("", None),
    ])
    def test_parse_rename(self, raw, expected):
        assert parse_rename(raw) == expected


class TestGitCommitCollector:
    def test_missing_path(self, tmp_path):
        missing = tmp_path / "nope"
        with pytest.raises(RepositoryNotFoundError, match="does not exist"):
            GitCommitCollector(str(missing))

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(InvalidRepositoryError, match="Not a git repository"):
            GitCommitCollector(str(tmp_path))

    def test_unknown_branch(self, sample_repo):
        with pytest.raises(BranchNotFoundError, match="'develop'"):
            GitCommitCollector(str(sample_repo.root), branch="develop")

    def test_validation_errors_share_a_base_class(self, tmp_path):
        with pytest.raises(MaintSightError):
            GitCommitCollector(str(tmp_path))
        with pytest.raises(ValueError):
            GitCommitCollector(str(tmp_path))

    def test_fetch_commit_data(self, sample_repo):
        collector = GitCommitCollector(str(sample_repo.root), branch="main")
        stats = collector.fetch_commit_data()

        assert list(stats) == ["src/parser.py"]
        parser = stats["src/parser.py"]
        assert parser.commits == 2
        assert parser.lines_added == 14
        assert parser.lines_removed == 2
        assert parser.authors == {"alice@example.com", "bob@example.com"}
        assert parser.bug_commits == 1
        assert parser.feature_commits == 1

    def test_max_commits_limits_history(self, sample_repo):
        collector = GitCommitCollector(str(sample_repo.root), branch="main")
        stats = collector.fetch_commit_data(max_commits=1)
        assert stats["src/parser.py"].commits == 1
        assert stats["src/parser.py"].authors == {"bob@example.com"}

    def test_only_existing_files(self, sample_repo):
        sample_repo.commit("add helper", "alice", files={"src/helper.py": "x\n"})
        sample_repo.commit("clean up helper", "alice", deleted=["src/helper.py"])

        everything = GitCommitCollector(str(sample_repo.root), branch="main").fetch_commit_data()
        existing = GitCommitCollector(
            str(sample_repo.root), branch="main", only_existing_files=True
        ).fetch_commit_data()

        assert "src/helper.py" in everything
        assert everything["src/helper.py"].refactor_commits == 1
        assert "src/helper.py" not in existing
        assert "src/parser.py" in existing

    def test_no_source_files_returns_empty(self, repo_builder):
        repo_builder.commit("docs", "alice", files={"README.md": "hello\n"})
        repo_builder.repo.git.branch("-M", "main")

        collector = GitCommitCollector(str(repo_builder.root), branch="main", window_size_days=None)
        assert collector.fetch_commit_data() == {}

    def test_log_is_streamed_from_the_git_process(self, sample_repo, mocker):
        collector = GitCommitCollector(str(sample_repo.root), branch="main")
        collector.repo = mocker.Mock()
        proc = collector.repo.git.log.return_value
        proc.stdout = iter(line.encode() for line in TWO_COMMIT_LOG.splitlines(keepends=True))

        stats = collector.fetch_commit_data(5)

        assert stats["src/parser.py"].commits == 2
        assert collector.repo.git.log.call_args.kwargs == {"as_process": True}
        assert "-n5" in collector.repo.git.log.call_args.args
        proc.wait.assert_called_once_with()

    def test_git_log_failure_is_reported(self, sample_repo):
        collector = GitCommitCollector(str(sample_repo.root), branch="main")
        sample_repo.repo.git.checkout("-b", "other")
        sample_repo.repo.git.branch("-D", "main")

        with pytest.raises(GitCommandFailedError, match="main"):
            collector.fetch_commit_data()
