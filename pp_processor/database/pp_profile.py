from typing import Any

from pp_processor.models.pp import PPEntry

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class PlayerPPProfile(SQLModel, table=True):
    __tablename__: str = "player_pp_profile"
    uid: int = Field(primary_key=True)
    pp_total: float = Field(default=0)
    weighted_accuracy: float = Field(default=1)
    playc: int = Field(default=0)
    entries: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    def get_entries(self) -> list[PPEntry]:
        return [PPEntry.model_validate(entry) for entry in self.entries]

    def set_entries(self, entries: list[PPEntry]) -> None:
        # JSON columns are not mutation-tracked, assign a new list.
        self.entries = [entry.model_dump() for entry in entries]
