from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__: str = "user"
    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(max_length=64, unique=True)
    pp: float = Field(default=0)
    accuracy: float = Field(default=1)
    playcount: int = Field(default=0)
    last_login_time: datetime | None = Field(default=None, sa_type=DateTime)
