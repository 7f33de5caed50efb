"""Error hierarchy for project save and load."""

from dataclasses import dataclass


class ProjectError(Exception):
    """Base for all project persistence errors."""


class ProjectReadError(ProjectError):
    """The project source could not be read."""


class ProjectParseError(ProjectError):
    """The project text is not well-formed JSON."""


class ProjectValidationError(ProjectError):
    """The decoded document does not have the project file shape."""


class ProjectSaveError(ProjectError):
    """Encoding, serializing or emitting a project failed."""


@dataclass(frozen=True)
class SerializationWarning:
    """A node field that was dropped because its value could not be cloned."""

    node_id: str
    field: str
    reason: str

    def __str__(self) -> str:
        return f"Could not serialize property '{self.field}' for node {self.node_id}: {self.reason}"
