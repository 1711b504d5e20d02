import json
from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.exceptions import MalformedMessageError

CellKey = str  # "x,y"


class CellOccupant(BaseModel):
    """Color and claimant of a claimed cell. Never changes once stored."""
    model_config = ConfigDict(frozen=True)

    color: str
    claimant: str


# --- INBOUND MESSAGES ---
class ColorCellMessage(BaseModel):
    model_config = ConfigDict(strict=True)

    type: Literal["colorCell"]
    key: CellKey = Field(min_length=1)
    color: str = Field(min_length=1)
    username: str = Field(min_length=1)

    def to_occupant(self) -> CellOccupant:
        return CellOccupant(color=self.color, claimant=self.username)


# Known inbound messages, keyed by their "type" field
INBOUND_MESSAGE_TYPES: Dict[str, type[BaseModel]] = {
    "colorCell": ColorCellMessage,
}


# --- OUTBOUND MESSAGES ---
class InitMessage(BaseModel):
    type: Literal["init"] = "init"
    grid: Dict[CellKey, CellOccupant]


class CellUpdateMessage(BaseModel):
    type: Literal["cellUpdate"] = "cellUpdate"
    key: CellKey
    color: str
    username: str


def parse_inbound_message(raw: str | bytes) -> BaseModel:
    """Decode a raw websocket frame into one of the known inbound messages

    Args:
        raw (str | bytes): text or binary frame received from the client

    Raises:
        MalformedMessageError: the frame is not JSON, not an object, has an unknown type
            or misses one of the required fields

    Returns:
        BaseModel: the matching inbound message model
    """
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # ValueError also covers the int digit limit, RecursionError deep nesting
        raise MalformedMessageError(f"Invalid JSON message: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError("Message must be a JSON object.")

    message_type = data.get("type")
    model = INBOUND_MESSAGE_TYPES.get(message_type) if isinstance(message_type, str) else None
    if model is None:
        raise MalformedMessageError(f"Unknown message type: {message_type!r}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedMessageError(
            f"Invalid {message_type} message: {e.error_count()} error(s)"
        ) from e
