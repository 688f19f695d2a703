"""Version control boundary.

No implementation ships with the package; callers inject one that talks to
their hosting service.
"""

from typing import Protocol

from pydantic import BaseModel


class FileChange(BaseModel):
    path: str
    content: str


class VersionControl(Protocol):
    async def create_branch(self, repository: str, branch_name: str, from_branch: str) -> None: ...

    async def commit_changes(
        self, repository: str, branch_name: str, files: list[FileChange], message: str
    ) -> str:
        """Commit ``files`` to ``branch_name`` and return the commit id."""
        ...
