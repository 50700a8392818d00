"""Base pydantic model shared by API response models."""

from pydantic import BaseModel


class APIBaseModel(BaseModel):
    """Base class for all API models.

    Provides readable JSON serialization for debugging output.
    """

    def __str__(self) -> str:
        """Return a formatted JSON representation of the model."""
        return self.model_dump_json(indent=2)
