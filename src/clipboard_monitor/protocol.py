"""Line-delimited JSON protocol spoken with the host process.

Outbound messages go to stdout, one compact JSON object per line, tagged by a
``type`` field. Inbound control commands arrive on stdin in the same framing.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Type

from .exceptions import CommandDecodeError, ProtocolError

# Wire tag -> variant class, filled as variants are declared
OUTPUT_MESSAGE_TYPES: Dict[str, Type["OutputMessage"]] = {}


@dataclass(frozen=True)
class OutputMessage:
    """Base class for every message written to the host."""

    type: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        tag = cls.__dict__.get("type")
        if not tag:
            raise TypeError(f"{cls.__name__} must declare a wire 'type' tag")
        if tag in OUTPUT_MESSAGE_TYPES:
            raise TypeError(f"Duplicate wire tag '{tag}' for {cls.__name__}")
        OUTPUT_MESSAGE_TYPES[tag] = cls

    def to_dict(self) -> dict:
        """Wire representation: the type tag followed by the payload fields."""
        payload = {"type": self.type}
        payload.update(asdict(self))
        return payload


@dataclass(frozen=True)
class Ready(OutputMessage):
    """First message of the process lifetime."""
    type: ClassVar[str] = "ready"


@dataclass(frozen=True)
class ClipboardUpdate(OutputMessage):
    """New clipboard text was observed."""
    type: ClassVar[str] = "clipboard_update"

    content: str
    timestamp: str
    length: int

    @classmethod
    def from_content(cls, content: str, now: Optional[datetime] = None) -> "ClipboardUpdate":
        """Build an update stamped with the current UTC time.

        ``length`` is the UTF-8 byte length of ``content``.
        """
        now = now or datetime.now(timezone.utc)
        return cls(
            content=content,
            timestamp=now.isoformat(),
            length=len(content.encode("utf-8")),
        )


@dataclass(frozen=True)
class TriggerXml(OutputMessage):
    """Command markup spans found in the clipboard, in source order."""
    type: ClassVar[str] = "trigger_xml"

    xml_payloads: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TriggerSearch(OutputMessage):
    """A single search query found in the clipboard."""
    type: ClassVar[str] = "trigger_search"

    query: str


@dataclass(frozen=True)
class Error(OutputMessage):
    """Fatal condition reported to the host before exiting."""
    type: ClassVar[str] = "error"

    message: str


def encode_message(message: OutputMessage) -> str:
    """Serialize a message to a single JSON line (without terminator).

    Raises:
        ProtocolError: If ``message`` is not a registered output variant
    """
    if OUTPUT_MESSAGE_TYPES.get(getattr(message, "type", None)) is not type(message):
        raise ProtocolError(f"Cannot encode unregistered message {message!r}")
    return json.dumps(message.to_dict(), ensure_ascii=False, separators=(",", ":"))


class InputCommand(Enum):
    """Control commands accepted from the host."""
    PAUSE = "pause"
    RESUME = "resume"


def decode_command(line: str) -> InputCommand:
    """Decode one inbound control line.

    Args:
        line: Raw line, surrounding whitespace allowed

    Returns:
        The decoded command

    Raises:
        CommandDecodeError: If the line is not a JSON object with a known ``type``
    """
    try:
        payload = json.loads(line)
    except ValueError as e:
        raise CommandDecodeError(f"Invalid JSON in control line: {e}") from e

    if not isinstance(payload, dict):
        raise CommandDecodeError(f"Control line must be a JSON object, got {type(payload).__name__}")

    tag = payload.get("type")
    if not isinstance(tag, str):
        raise CommandDecodeError("Control line is missing a string 'type' field")

    try:
        return InputCommand(tag)
    except ValueError:
        raise CommandDecodeError(f"Unknown control command '{tag}'") from None
