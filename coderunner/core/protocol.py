"""Message schema connecting the orchestrator and guest execution contexts.

Every sandboxed language talks over its own Channel: one JSON object per line,
with message types built from a per-language prefix (``EXECUTE_PYTHON``,
``PYTHON_OUTPUT``, ...). Envelopes are decoded at the boundary into a closed
tagged union of pydantic models, so the sandbox manager only ever handles
typed messages. Anything that fails to decode (bad JSON, unknown type,
unknown output level) becomes None and is dropped by the caller.

Wire envelope::

    {"type": "PYTHON_OUTPUT", "id": "<request id>", "data": {"level": "log", "data": "x"}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from coderunner.core.models import OutputEvent, OutputLevel


class MessageKind(str, Enum):
    """Guest-to-orchestrator message kinds."""

    READY = "ready"
    LOADING = "loading"
    OUTPUT = "output"
    ERROR = "error"
    COMPLETE = "complete"


_TYPE_SUFFIXES: dict[MessageKind, str] = {
    MessageKind.READY: "SANDBOX_READY",
    MessageKind.LOADING: "LOADING",
    MessageKind.OUTPUT: "OUTPUT",
    MessageKind.ERROR: "ERROR",
    MessageKind.COMPLETE: "COMPLETE",
}


class SandboxReady(BaseModel):
    """Guest engine is resident and accepts EXECUTE requests."""

    kind: Literal["ready"] = "ready"
    request_id: str | None = None


class Loading(BaseModel):
    """Human-readable bootstrap progress."""

    kind: Literal["loading"] = "loading"
    request_id: str | None = None
    message: str = ""


class Output(BaseModel):
    """One output event produced by guest code."""

    kind: Literal["output"] = "output"
    request_id: str | None = None
    level: OutputLevel
    data: Any = None

    def to_event(self) -> OutputEvent:
        return OutputEvent(level=self.level, data=self.data)


class GuestError(BaseModel):
    """Normalized guest failure.

    Without a request_id it reports a bootstrap failure.
    """

    kind: Literal["error"] = "error"
    request_id: str | None = None
    message: str


class Complete(BaseModel):
    """Terminal message for a request; nothing follows it for that request."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["complete"] = "complete"
    request_id: str | None = None
    success: bool
    duration_ms: float = Field(default=0.0, alias="duration")
    error: str | None = None


GuestMessage = Annotated[
    SandboxReady | Loading | Output | GuestError | Complete,
    Field(discriminator="kind"),
]

_guest_message_adapter: TypeAdapter[Any] = TypeAdapter(GuestMessage)


class ExecuteRequest(BaseModel):
    """Orchestrator-to-guest request carrying the code to run."""

    request_id: str
    code: str


@dataclass(frozen=True)
class Channel:
    """Per-language message namespace.

    Attributes:
        prefix: Upper-case prefix used to build message types (e.g. "PYTHON")
    """

    prefix: str

    @property
    def execute_type(self) -> str:
        return f"EXECUTE_{self.prefix}"

    def message_type(self, kind: MessageKind) -> str:
        """Wire type string for a guest message kind."""
        return f"{self.prefix}_{_TYPE_SUFFIXES[kind]}"

    def kind_of(self, message_type: str) -> MessageKind | None:
        """Map a wire type string back to its kind, or None if foreign."""
        head = f"{self.prefix}_"
        if not message_type.startswith(head):
            return None
        suffix = message_type[len(head):]
        for kind, known in _TYPE_SUFFIXES.items():
            if known == suffix:
                return kind
        return None

    def encode(self, message: BaseModel) -> str:
        """Serialize a guest message to one envelope line (with newline)."""
        kind = MessageKind(message.kind)  # type: ignore[attr-defined]
        data = message.model_dump(
            mode="json",
            by_alias=True,
            exclude={"kind", "request_id"},
            exclude_none=True,
        )
        envelope = {
            "type": self.message_type(kind),
            "id": message.request_id,  # type: ignore[attr-defined]
            "data": data,
        }
        return json.dumps(envelope, ensure_ascii=False, default=str) + "\n"

    def decode(self, line: str | bytes) -> SandboxReady | Loading | Output | GuestError | Complete | None:
        """Parse one envelope line from a guest.

        Returns:
            The typed message, or None for anything malformed or foreign
        """
        envelope = _load_envelope(line)
        if envelope is None:
            return None

        message_type = envelope.get("type")
        if not isinstance(message_type, str):
            return None
        kind = self.kind_of(message_type)
        if kind is None:
            return None

        data = envelope.get("data") or {}
        if not isinstance(data, dict):
            return None
        payload = dict(data)
        payload["kind"] = kind.value
        payload["request_id"] = envelope.get("id")

        try:
            return _guest_message_adapter.validate_python(payload)  # type: ignore[no-any-return]
        except ValidationError:
            return None

    def encode_request(self, request: ExecuteRequest) -> str:
        """Serialize an EXECUTE request to one envelope line (with newline)."""
        envelope = {
            "type": self.execute_type,
            "id": request.request_id,
            "data": {"code": request.code},
        }
        return json.dumps(envelope, ensure_ascii=False) + "\n"

    def decode_request(self, line: str | bytes) -> ExecuteRequest | None:
        """Parse an EXECUTE envelope on the guest side; None if not one."""
        envelope = _load_envelope(line)
        if envelope is None or envelope.get("type") != self.execute_type:
            return None

        data = envelope.get("data")
        if not isinstance(data, dict):
            return None
        try:
            return ExecuteRequest(request_id=envelope.get("id"), code=data.get("code"))
        except ValidationError:
            return None


def _load_envelope(line: str | bytes) -> dict[str, Any] | None:
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None
    try:
        envelope = json.loads(line)
    except json.JSONDecodeError:
        return None
    return envelope if isinstance(envelope, dict) else None


PYTHON_CHANNEL = Channel("PYTHON")
SQL_CHANNEL = Channel("SQL")
LUA_CHANNEL = Channel("LUA")
RUBY_CHANNEL = Channel("RUBY")
TYPESCRIPT_CHANNEL = Channel("TS")
JAVASCRIPT_CHANNEL = Channel("JS")
