"""Serial link and line protocol for the tic-tac-toe controller board."""

from .errors import TransportError, TransportIOError, TransportOpenError
from .models import Command, Outcome, Response, SerialDevice, TransportState
from .protocol import OUTCOME_MARKERS, SNAPSHOT_LENGTH, decode_response, encode_command, encode_move
from .transport import MockFileTransport, SerialTransport, Transport, open_transport, select_backend

__all__ = [
    "Command",
    "MockFileTransport",
    "OUTCOME_MARKERS",
    "Outcome",
    "Response",
    "SNAPSHOT_LENGTH",
    "SerialDevice",
    "SerialTransport",
    "Transport",
    "TransportError",
    "TransportIOError",
    "TransportOpenError",
    "TransportState",
    "decode_response",
    "encode_command",
    "encode_move",
    "open_transport",
    "select_backend",
]
