"""Error taxonomy shared by the resolver, walker, diff and blame engines."""


class StrataError(Exception):
    """Base class for all errors raised by strata."""


class RevisionUnavailable(StrataError):
    """A ref or commit could not be resolved (recovered via HEAD where possible)."""

    def __init__(self, revision: str, reason: str = None):
        self.revision = revision
        self.reason = reason
        msg = f"Revision unavailable: {revision}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class PathNotFound(StrataError):
    """A path does not exist in the tree it was looked up in."""

    def __init__(self, path: str, commit: str = None):
        self.path = path
        self.commit = commit
        msg = f"Path not found: {path}"
        if commit:
            msg = f"{msg} at {commit[:7]}"
        super().__init__(msg)


class BackendUnavailable(StrataError):
    """The repository could not be opened; fatal for the request."""

    def __init__(self, path: str, reason: str = None):
        self.path = path
        self.reason = reason
        msg = f"Unable to open repository: {path}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class PatchUnavailable(StrataError):
    """No patch could be produced for one delta (binary file, backend error)."""

    def __init__(self, path: str, reason: str = None):
        self.path = path
        self.reason = reason
        msg = f"Patch unavailable for {path}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
