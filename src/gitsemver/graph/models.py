"""Data models for commit graph content."""

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    """A commit in the history graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    parents: tuple[str, ...] = ()

    @property
    def short_id(self) -> str:
        """Get the abbreviated commit identity."""
        return self.id[:10]

    @property
    def is_merge(self) -> bool:
        """Check if this commit has more than one parent."""
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        """Check if this commit has no parents."""
        return not self.parents
