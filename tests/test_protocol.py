"""Tests for the line-delimited JSON message schema."""

from __future__ import annotations

import json

from coderunner.core.models import OutputLevel
from coderunner.core.protocol import (
    PYTHON_CHANNEL,
    SQL_CHANNEL,
    TYPESCRIPT_CHANNEL,
    Channel,
    Complete,
    ExecuteRequest,
    GuestError,
    Loading,
    MessageKind,
    Output,
    SandboxReady,
)


class TestChannelNames:
    """Test message type construction."""

    def test_execute_type(self):
        assert PYTHON_CHANNEL.execute_type == "EXECUTE_PYTHON"
        assert TYPESCRIPT_CHANNEL.execute_type == "EXECUTE_TS"

    def test_message_types(self):
        assert SQL_CHANNEL.message_type(MessageKind.READY) == "SQL_SANDBOX_READY"
        assert SQL_CHANNEL.message_type(MessageKind.OUTPUT) == "SQL_OUTPUT"
        assert SQL_CHANNEL.message_type(MessageKind.COMPLETE) == "SQL_COMPLETE"

    def test_kind_of_rejects_foreign_prefix(self):
        assert PYTHON_CHANNEL.kind_of("PYTHON_ERROR") is MessageKind.ERROR
        assert PYTHON_CHANNEL.kind_of("SQL_ERROR") is None
        assert PYTHON_CHANNEL.kind_of("PYTHON_SHOUT") is None


class TestEncode:
    """Test guest-side serialization."""

    def test_output_envelope(self):
        line = PYTHON_CHANNEL.encode(Output(request_id="r1", level=OutputLevel.LOG, data="hi"))
        assert line.endswith("\n")
        assert json.loads(line) == {
            "type": "PYTHON_OUTPUT",
            "id": "r1",
            "data": {"level": "log", "data": "hi"},
        }

    def test_complete_uses_duration_key(self):
        """Test COMPLETE carries its timing under the wire name 'duration'."""
        line = PYTHON_CHANNEL.encode(Complete(request_id="r1", success=True, duration_ms=4.5))
        envelope = json.loads(line)
        assert envelope["data"] == {"success": True, "duration": 4.5}

    def test_ready_without_id(self):
        envelope = json.loads(PYTHON_CHANNEL.encode(SandboxReady()))
        assert envelope == {"type": "PYTHON_SANDBOX_READY", "id": None, "data": {}}

    def test_non_ascii_preserved(self):
        line = PYTHON_CHANNEL.encode(Output(request_id="r", level=OutputLevel.INFO, data="✓ done"))
        assert "✓ done" in line

    def test_request_envelope(self):
        line = SQL_CHANNEL.encode_request(ExecuteRequest(request_id="abc", code="SELECT 1;"))
        assert json.loads(line) == {"type": "EXECUTE_SQL", "id": "abc", "data": {"code": "SELECT 1;"}}


class TestDecode:
    """Test orchestrator-side parsing."""

    def _line(self, message_type, request_id=None, data=None) -> str:
        return json.dumps({"type": message_type, "id": request_id, "data": data})

    def test_output(self):
        message = PYTHON_CHANNEL.decode(self._line("PYTHON_OUTPUT", "r1", {"level": "warn", "data": "x"}))
        assert isinstance(message, Output)
        assert message.request_id == "r1"
        assert message.level is OutputLevel.WARN
        assert message.to_event().data == "x"

    def test_complete(self):
        message = PYTHON_CHANNEL.decode(
            self._line("PYTHON_COMPLETE", "r1", {"success": False, "duration": 2, "error": "bad"})
        )
        assert isinstance(message, Complete)
        assert message.success is False
        assert message.duration_ms == 2.0
        assert message.error == "bad"

    def test_complete_without_duration(self):
        message = PYTHON_CHANNEL.decode(self._line("PYTHON_COMPLETE", "r1", {"success": True}))
        assert isinstance(message, Complete)
        assert message.duration_ms == 0.0

    def test_ready_loading_and_error(self):
        assert isinstance(PYTHON_CHANNEL.decode(self._line("PYTHON_SANDBOX_READY")), SandboxReady)
        loading = PYTHON_CHANNEL.decode(self._line("PYTHON_LOADING", None, {"message": "wait"}))
        assert isinstance(loading, Loading) and loading.message == "wait"
        error = PYTHON_CHANNEL.decode(self._line("PYTHON_ERROR", None, {"message": "no engine"}))
        assert isinstance(error, GuestError)
        assert error.request_id is None

    def test_bytes_input(self):
        line = self._line("PYTHON_OUTPUT", "r", {"level": "log", "data": "é"}).encode("utf-8")
        message = PYTHON_CHANNEL.decode(line)
        assert isinstance(message, Output)
        assert message.data == "é"

    def test_malformed_inputs_return_none(self):
        """Test bad JSON, non-objects, foreign types and bad payloads are dropped."""
        assert PYTHON_CHANNEL.decode("") is None
        assert PYTHON_CHANNEL.decode("not json") is None
        assert PYTHON_CHANNEL.decode("[1, 2]") is None
        assert PYTHON_CHANNEL.decode(json.dumps({"id": "r"})) is None
        assert PYTHON_CHANNEL.decode(self._line("SQL_OUTPUT", "r", {"level": "log"})) is None
        assert PYTHON_CHANNEL.decode(self._line("PYTHON_OUTPUT", "r", {"level": "shout"})) is None
        assert PYTHON_CHANNEL.decode(self._line("PYTHON_OUTPUT", "r", ["not", "a", "dict"])) is None
        assert PYTHON_CHANNEL.decode(self._line("PYTHON_ERROR", "r", {})) is None
        assert PYTHON_CHANNEL.decode(self._line("PYTHON_COMPLETE", "r", {})) is None

    def test_structured_output_data(self):
        payload = {"level": "result", "data": {"columns": ["a"], "rows": [[1]], "statement_index": 0}}
        message = PYTHON_CHANNEL.decode(self._line("PYTHON_OUTPUT", "r", payload))
        assert isinstance(message, Output)
        assert message.data["columns"] == ["a"]


class TestDecodeRequest:
    """Test guest-side request parsing."""

    def test_execute_request(self):
        channel = Channel("LUA")
        request = channel.decode_request('{"type": "EXECUTE_LUA", "id": "x", "data": {"code": "print(1)"}}')
        assert request == ExecuteRequest(request_id="x", code="print(1)")

    def test_other_types_ignored(self):
        channel = Channel("LUA")
        assert channel.decode_request('{"type": "EXECUTE_SQL", "id": "x", "data": {"code": ""}}') is None
        assert channel.decode_request('{"type": "EXECUTE_LUA", "id": "x", "data": {}}') is None
        assert channel.decode_request('{"type": "EXECUTE_LUA", "id": null, "data": {"code": ""}}') is None
        assert channel.decode_request("garbage") is None
