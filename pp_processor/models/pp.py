from pydantic import BaseModel


class PPEntry(BaseModel):
    """One slot of a player's ranked list. ``score_id`` names the persisted replay backing it."""

    hash: str
    score_id: int
    title: str = ""
    pp: float
    accuracy: float
    mods: str = ""
    combo: int = 0
    miss: int = 0
