"""Interactive command registry entry."""

from pydantic import BaseModel, Field


class InteractiveCommand(BaseModel):
    """A program that needs the controlling terminal (``vim``, ``ssh``...)."""

    command_name: str = Field(alias="commandName")

    model_config = {"frozen": True, "populate_by_name": True}
