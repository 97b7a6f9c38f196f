"""Git module error types."""

from semchange.core.errors import ErrorCode, SemchangeError


class GitError(SemchangeError):
    """Base error for git operations."""

    @classmethod
    def operation_failed(cls, operation: str, reason: str) -> "GitError":
        return cls(
            code=ErrorCode.GIT_ERROR,
            message=f"Git {operation} failed: {reason}",
            details={"operation": operation, "reason": reason},
        )


class NotARepositoryError(GitError):
    """Path is not a git repository."""

    @classmethod
    def at(cls, path: str) -> "NotARepositoryError":
        return cls(
            code=ErrorCode.GIT_NOT_A_REPOSITORY,
            message=f"Not a git repository: {path}",
            details={"path": path},
        )


class RefNotFoundError(GitError):
    """Reference (branch, tag, commit) not found."""

    @classmethod
    def for_ref(cls, ref: str) -> "RefNotFoundError":
        return cls(
            code=ErrorCode.GIT_REF_NOT_FOUND,
            message=f"Reference not found: {ref}",
            details={"ref": ref},
        )
