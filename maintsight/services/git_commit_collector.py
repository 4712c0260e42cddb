"""Git commit history collection and per-file aggregation."""

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Optional, Union

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from maintsight.config import DEFAULT_BRANCH, DEFAULT_MAX_COMMITS, DEFAULT_WINDOW_DAYS
from maintsight.errors import (
    BranchNotFoundError,
    GitCommandFailedError,
    InvalidRepositoryError,
    RepositoryNotFoundError,
)
from maintsight.models import CommitRecord, FileStats
from maintsight.utils.logger import Logger

# Source file extensions to analyze
SOURCE_EXTENSIONS = frozenset({
    '.py', '.pyx', '.js', '.mjs', '.cjs', '.ts', '.jsx', '.tsx', '.vue', '.svelte',
    '.java', '.kt', '.kts', '.scala', '.groovy',
    '.c', '.cc', '.cpp', '.cxx', '.h', '.hh', '.hpp', '.hxx',
    '.cs', '.fs', '.vb', '.swift', '.m', '.mm', '.dart',
    '.rb', '.php', '.pl', '.pm', '.go', '.rs', '.zig', '.nim',
    '.hs', '.elm', '.ml', '.mli', '.clj', '.cljs', '.ex', '.exs', '.erl',
    '.r', '.jl', '.lua', '.sol',
})

LOG_FORMAT = '%H|%ae|%at|%s'

HEADER_RE = re.compile(r'^([0-9a-f]{40}|[0-9a-f]{64})\|([^|]*)\|(-?\d+)\|(.*)$')
NUMSTAT_RE = re.compile(r'^(\S+)\t(\S+)\t(.+)$')
DIR_RENAME_RE = re.compile(r'^(.*?)\{([^}]*?)\s*=>\s*([^}]*?)\}(.*)$')


def is_source_file(filepath: str) -> bool:
    """Check if file is a source code file to analyze."""
    return Path(filepath).suffix.lower() in SOURCE_EXTENSIONS


def parse_rename(filepath: str) -> Optional[str]:
    """Resolve git's numstat rename notation to the current path.

    Handles ``old => new``, ``{old => new}`` and ``dir/{old => new}/file``.
    Returns None for paths that cannot name a file.
    """
    filepath = filepath.strip()
    if not filepath or filepath == '/dev/null' or '\0' in filepath:
        return None

    match = DIR_RENAME_RE.match(filepath)
    if match:
        prefix, _, new_part, suffix = match.groups()
        filepath = re.sub(r'/{2,}', '/', prefix + new_part.strip() + suffix)
    elif ' => ' in filepath:
        parts = filepath.split(' => ')
        if len(parts) != 2:
            return None
        filepath = parts[1].strip()

    if not filepath or filepath == '/dev/null' or any(c in filepath for c in ('=>', '{', '}')):
        return None
    return filepath.lstrip('/')


def _decode_lines(stream: Iterable[bytes]) -> Iterator[str]:
    for raw in stream:
        yield raw.decode('utf-8', errors='replace')


def parse_log(
    output: Union[str, Iterable[str]],
    path_filter: Callable[[str], bool] = is_source_file,
) -> Dict[str, FileStats]:
    """Fold ``git log --numstat`` output into per-file aggregates.

    Header lines set the current commit; every numstat line after it is
    attributed to that commit. Lines of any other shape, binary markers
    (``-``) and stat lines before the first header are skipped.

    Args:
        output: Raw log text or an iterable of its lines
        path_filter: Predicate deciding which resolved paths to keep

    Returns:
        Mapping of file path to its FileStats; empty if nothing matched
    """
    lines = output.splitlines() if isinstance(output, str) else output
    file_stats: Dict[str, FileStats] = {}
    current: Optional[CommitRecord] = None

    for line in lines:
        line = line.rstrip('\r\n')
        if not line.strip():
            continue

        header = HEADER_RE.match(line)
        if header:
            _, author, timestamp, message = header.groups()
            current = CommitRecord(
                author=author,
                timestamp=datetime.fromtimestamp(int(timestamp), tz=timezone.utc),
                message=message,
            )
            continue

        stat = NUMSTAT_RE.match(line)
        if not stat or current is None:
            continue

        added_str, removed_str, raw_path = stat.groups()
        try:
            added = int(added_str)
            removed = int(removed_str)
        except ValueError:
            continue
        if added < 0 or removed < 0:
            continue

        filepath = parse_rename(raw_path)
        if filepath is None or not path_filter(filepath):
            continue

        if filepath not in file_stats:
            file_stats[filepath] = FileStats.first_seen(filepath, current)
        file_stats[filepath].record(current, added, removed)

    return file_stats


class GitCommitCollector:
    """Collects per-file commit statistics from a local git repository."""

    def __init__(
        self,
        repo_path: str,
        branch: str = DEFAULT_BRANCH,
        window_size_days: Optional[int] = DEFAULT_WINDOW_DAYS,
        only_existing_files: bool = False,
    ):
        """Initialize git commit collector.

        Args:
            repo_path: Path to git repository
            branch: Git branch (or any commit-ish) to analyze
            window_size_days: Trailing time window in days; None for full history
            only_existing_files: Only analyze files that currently exist

        Raises:
            RepositoryNotFoundError: repo_path does not exist
            InvalidRepositoryError: repo_path is not a git working copy
            BranchNotFoundError: branch cannot be resolved
        """
        self.repo_path = Path(repo_path).resolve()
        self.branch = branch
        self.window_size_days = window_size_days
        self.only_existing_files = only_existing_files
        self.logger = Logger('GitCommitCollector')

        if not self.repo_path.exists():
            raise RepositoryNotFoundError(repo_path)

        try:
            self.repo = Repo(self.repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise InvalidRepositoryError(repo_path)

        try:
            self.repo.git.rev_parse('--verify', f'{branch}^{{commit}}')
        except GitCommandError:
            raise BranchNotFoundError(branch, repo_path)

        self.logger.info(f"Initialized repository: {self.repo_path}", '📁')
        self.logger.info(f"Using branch: {branch}", '🌿')
        if window_size_days is not None:
            self.logger.info(f"Window size: {window_size_days} days", '📅')

    def _accepts(self, filepath: str) -> bool:
        if not is_source_file(filepath):
            return False
        if self.only_existing_files and not (self.repo_path / filepath).exists():
            return False
        return True

    def _log_args(self, max_commits: int) -> list:
        args = [
            self.branch,
            f'-n{max_commits}',
            '--numstat',
            '--no-merges',
            '--find-renames',
            f'--format={LOG_FORMAT}',
        ]
        if self.window_size_days is not None:
            since = datetime.now(timezone.utc) - timedelta(days=self.window_size_days)
            args.append(f"--since={since.strftime('%Y-%m-%d %H:%M:%S +0000')}")
        return args

    def fetch_commit_data(self, max_commits: int = DEFAULT_MAX_COMMITS) -> Dict[str, FileStats]:
        """Read the branch history once and aggregate it by file.

        Args:
            max_commits: Maximum number of commits to analyze

        Returns:
            Mapping of file path to FileStats; empty when no source files were touched

        Raises:
            GitCommandFailedError: git log exited with an error
        """
        self.logger.info(f"Fetching commits from {self.repo_path} (branch: {self.branch})", '🔄')
        self.logger.info(f"Max commits: {max_commits}", '📊')

        try:
            proc = self.repo.git.log(*self._log_args(max_commits), as_process=True)
            try:
                file_stats = parse_log(_decode_lines(proc.stdout), path_filter=self._accepts)
            finally:
                proc.wait()
        except GitCommandError as e:
            raise GitCommandFailedError(f"Failed to fetch git log for '{self.branch}': {e}")

        if not file_stats:
            self.logger.warn("No source files found in commits", '⚠️')
            return file_stats

        self.logger.success(f"Fetched data for {len(file_stats)} files", '✅')
        return file_stats
