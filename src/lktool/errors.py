"""Error kinds raised by lktool.

Every failure a command can hit is a subclass of LktoolError. The CLI
catches LktoolError once per invocation and reports ``kind`` together with
the message and, when present, the raw diagnostic output of the external
tool (git status text, diff-stat, clone stderr).
"""

from __future__ import annotations


class LktoolError(Exception):
    """Base class for all lktool failures."""

    kind = "LktoolError"
    exit_code = 1

    def __init__(self, message: str, output: str = ""):
        self.message = message
        self.output = output
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ModuleNotFound(LktoolError):
    """Module name is absent from every searched registry class."""

    kind = "ModuleNotFound"

    def __init__(self, name: str, searched: list[str] | None = None):
        self.name = name
        self.searched = searched or []
        where = f" (searched: {', '.join(self.searched)})" if self.searched else ""
        super().__init__(f"module '{name}' not found in registry{where}")


class RegistryNotFound(LktoolError):
    kind = "RegistryNotFound"


class RegistryParseError(LktoolError):
    kind = "RegistryParseError"


class CheckoutFailed(LktoolError):
    """External clone did not complete."""

    kind = "CheckoutFailed"

    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        self.returncode = returncode
        super().__init__(message, output)


class WorkingCopyDirty(LktoolError):
    kind = "WorkingCopyDirty"


class UnpushedChanges(LktoolError):
    kind = "UnpushedChanges"


class VcsUnavailable(LktoolError):
    kind = "VcsUnavailable"


class OverrideTableMissing(LktoolError):
    kind = "OverrideTableMissing"


class ManifestParseError(LktoolError):
    kind = "ManifestParseError"


class ManifestWriteError(LktoolError):
    kind = "ManifestWriteError"


class InconsistentOverrideState(LktoolError):
    """Manifest override table and the on-disk container disagree.

    Never repaired automatically; the user has to reconcile by hand.
    """

    kind = "InconsistentOverrideState"
    exit_code = 3


class ProjectExists(LktoolError):
    kind = "ProjectExists"


class TemplateNotFound(LktoolError):
    kind = "TemplateNotFound"


class ProjectCreateFailed(LktoolError):
    """The template could not be copied into the new project directory."""

    kind = "ProjectCreateFailed"


class BuildFailed(LktoolError):
    kind = "BuildFailed"

    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        self.returncode = returncode
        super().__init__(message, output)
