"""Git import of repository data."""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from repo_migrator.core.config import settings
from repo_migrator.core.errors import MigrationError
from repo_migrator.models import MigrateOptions, Repository, User, repository_path
from repo_migrator.services.store import TaskStore

logger = logging.getLogger(__name__)


class GitMigrator:
    """Clones a remote repository into local storage."""

    def __init__(
        self,
        store: TaskStore,
        repository_root: str | Path | None = None,
        timeout: int | None = None,
    ):
        self.store = store
        self.repository_root = Path(repository_root or settings.repository_root)
        self.timeout = timeout or settings.git_timeout

    @staticmethod
    def build_clone_url(opts: MigrateOptions) -> str:
        """Build the URL to clone from, with auth credentials filled in.

        Credentials are only injected into HTTP(S) URLs. Other URLs and
        requests without an auth username are returned unchanged.
        """
        if not opts.auth_username:
            return opts.remote_url

        parts = urlsplit(opts.remote_url)
        if parts.scheme not in ("http", "https"):
            return opts.remote_url

        userinfo = quote(opts.auth_username, safe="")
        if opts.auth_password:
            userinfo = f"{userinfo}:{quote(opts.auth_password, safe='')}"
        host = parts.netloc.rpartition("@")[2]
        return urlunsplit(parts._replace(netloc=f"{userinfo}@{host}"))

    def repository_path(self, owner: User, repo: Repository) -> Path:
        """Get the on-disk location of a repository."""
        return repository_path(self.repository_root, owner.name, repo.lower_name)

    def migrate_repository_data(
        self, doer: User, owner: User, repo: Repository, opts: MigrateOptions
    ) -> Repository:
        """Clone the remote into the repository and mark it ready.

        Args:
            doer: User running the migration
            owner: Account owning the repository
            repo: Placeholder repository being migrated
            opts: Migration options

        Returns:
            The repository, now ready

        Raises:
            MigrationError: If git cannot clone the remote
        """
        path = self.repository_path(owner, repo)
        if path.exists():
            raise MigrationError(f"Repository files already exist at {path}")
        path.parent.mkdir(parents=True, exist_ok=True)

        command = [
            "git",
            "clone",
            "--mirror" if opts.mirror else "--bare",
            "--quiet",
            self.build_clone_url(opts),
            str(path),
        ]
        logger.info(f"Cloning {opts.remote_url} into {owner.name}/{repo.name}")
        try:
            subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
                # Fail instead of waiting for a password on stdin
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
            )
        except subprocess.CalledProcessError as e:
            shutil.rmtree(path, ignore_errors=True)
            raise MigrationError(
                f"Clone: exit status {e.returncode} - {(e.stderr or '').strip()}"
            ) from e
        except subprocess.TimeoutExpired as e:
            shutil.rmtree(path, ignore_errors=True)
            raise MigrationError(
                f"Clone: timed out after {self.timeout} seconds"
            ) from e

        logger.info(f"Cloned {owner.name}/{repo.name} requested by {doer.name}")
        return self.store.mark_repository_ready(repo, is_mirror=opts.mirror)
