"""Git access for batch runs."""

from semchange.git.errors import GitError, NotARepositoryError, RefNotFoundError
from semchange.git.repo import WORKING_TREE, ChangedFile, GitRepository

__all__ = [
    "WORKING_TREE",
    "ChangedFile",
    "GitError",
    "GitRepository",
    "NotARepositoryError",
    "RefNotFoundError",
]
