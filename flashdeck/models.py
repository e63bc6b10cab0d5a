from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel
from sqlalchemy import Column, DateTime, JSON


class Flashcard(BaseModel):
    """A single study card; serialized with camelCase keys on the wire."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = PydanticField(ge=1)
    headline: str
    content: str
    source_offset: int = PydanticField(alias="sourceOffset", ge=0)
    category: Optional[str] = None
    deeper_content: Optional[str] = PydanticField(default=None, alias="deeperContent")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Deck(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str
    media_type: str
    source: str = Field(default="chunker", description="chunker or ai")
    cards: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    viewed: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    bookmarked: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    answered: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    correct: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    def created_at_utc(self) -> datetime:
        # SQLite hands timestamps back without their offset
        if self.created_at.tzinfo is None:
            return self.created_at.replace(tzinfo=timezone.utc)
        return self.created_at
