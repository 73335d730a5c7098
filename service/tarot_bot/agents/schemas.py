from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Orientation(str, Enum):
    UPRIGHT = "upright"
    REVERSED = "reversed"


class TarotReading(BaseModel):
    """One card draw as returned by the tarot_reading tool call."""
    card: str
    orientation: Orientation
    interpretation: str

    @field_validator("card", "interpretation")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("orientation", mode="before")
    @classmethod
    def lowercase_orientation(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


# Inbound webhook models. Telegram sends far more than this;
# unknown fields are ignored.

class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: Optional[str] = None


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: Optional[int] = None
    message: Optional[TelegramMessage] = None
