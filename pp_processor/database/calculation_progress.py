from sqlmodel import Field, SQLModel


class ScoreCalculation(SQLModel, table=True):
    __tablename__: str = "score_calculation"
    process_id: int = Field(primary_key=True)
    score_id: int


class TotalPPCalculation(SQLModel, table=True):
    __tablename__: str = "total_pp_calculation"
    id: int = Field(primary_key=True)
