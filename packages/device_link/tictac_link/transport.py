"""Serial transport abstraction with a file-backed stand-in for CI runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Mapping

import serial
from serial.tools import list_ports

from .errors import TransportIOError, TransportOpenError
from .models import SerialDevice, TransportState


MOCK_ENV_VAR = "CI"
DEFAULT_PORT = "COM7"
DEFAULT_BAUD = 9600
MOCK_OUT_NAME = "mock_serial_out.txt"
MOCK_IN_NAME = "mock_serial_in.txt"
MAX_READ_BYTES = 255


@dataclass
class SerialConfig:
    port: str = DEFAULT_PORT
    baud: int = DEFAULT_BAUD
    read_interval_ms: int = 50
    read_total_constant_ms: int = 50
    read_total_multiplier_ms: int = 10
    write_total_constant_ms: int = 50
    write_total_multiplier_ms: int = 10
    max_read: int = MAX_READ_BYTES

    def read_timeout_s(self) -> float:
        return (self.read_total_constant_ms + self.read_total_multiplier_ms * self.max_read) / 1000

    def write_timeout_s(self, size: int) -> float:
        return (self.write_total_constant_ms + self.write_total_multiplier_ms * max(size, 1)) / 1000

    def inter_byte_timeout_s(self) -> float:
        return max(self.read_interval_ms, 1) / 1000


class Transport:
    """Byte channel to the controller board. Subclasses provide the backend."""

    backend = "none"

    @property
    def is_open(self) -> bool:
        raise NotImplementedError

    @property
    def state(self) -> TransportState:
        return TransportState.OPEN if self.is_open else TransportState.CLOSED

    def open(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def write(self, payload: bytes) -> int:
        raise NotImplementedError

    def read(self) -> bytes:
        raise NotImplementedError

    def __enter__(self) -> "Transport":
        if not self.is_open:
            self.open()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class SerialTransport(Transport):
    """pyserial backend with fixed 8N1 framing and bounded timeouts."""

    backend = "serial"

    def __init__(self, config: SerialConfig | None = None) -> None:
        self.config = config or SerialConfig()
        self._serial: Any | None = None

    @property
    def is_open(self) -> bool:
        return bool(self._serial and self._serial.is_open)

    def open(self) -> None:
        if self.is_open:
            return
        try:
            self._serial = serial.Serial(
                port=self.config.port,
                baudrate=self.config.baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.config.read_timeout_s(),
                write_timeout=self.config.write_timeout_s(self.config.max_read),
                inter_byte_timeout=self.config.inter_byte_timeout_s(),
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            self._serial = None
            raise TransportOpenError(f"Unable to open serial port {self.config.port}: {exc}") from exc

    def close(self) -> None:
        if self._serial is not None:
            self._serial.close()
            self._serial = None

    def write(self, payload: bytes) -> int:
        if not self.is_open:
            raise TransportIOError("Serial port is not open")
        try:
            self._serial.write_timeout = self.config.write_timeout_s(len(payload))
            return int(self._serial.write(payload) or 0)
        except (serial.SerialException, OSError) as exc:
            raise TransportIOError(f"Failed to write to serial port: {exc}") from exc

    def read(self) -> bytes:
        if not self.is_open:
            raise TransportIOError("Serial port is not open")
        try:
            return bytes(self._serial.read_until(b"\n", self.config.max_read))
        except (serial.SerialException, OSError) as exc:
            raise TransportIOError(f"Failed to read from serial port: {exc}") from exc

    @staticmethod
    def discover() -> list[SerialDevice]:
        devices: list[SerialDevice] = []
        for item in list_ports.comports():
            devices.append(
                SerialDevice(
                    device=item.device,
                    description=item.description,
                    hwid=item.hwid,
                    vid=item.vid,
                    pid=item.pid,
                )
            )
        return devices


class MockFileTransport(Transport):
    """Writes are appended to one file, reads consume another line by line."""

    backend = "mock"

    def __init__(self, out_path: Path, in_path: Path) -> None:
        self.out_path = Path(out_path)
        self.in_path = Path(in_path)
        self._out: IO[bytes] | None = None
        self._in: IO[bytes] | None = None

    @property
    def is_open(self) -> bool:
        return self._out is not None and self._in is not None

    def open(self) -> None:
        if self.is_open:
            return
        try:
            self._out = self.out_path.open("ab")
            self._in = self.in_path.open("rb")
        except OSError as exc:
            self.close()
            raise TransportOpenError(f"Unable to open mock serial port files: {exc}") from exc

    def close(self) -> None:
        for handle in (self._out, self._in):
            if handle is not None:
                handle.close()
        self._out = None
        self._in = None

    def write(self, payload: bytes) -> int:
        if self._out is None:
            raise TransportIOError("Mock serial port is not open")
        try:
            written = self._out.write(payload)
            self._out.flush()
        except OSError as exc:
            raise TransportIOError(f"Failed to write mock serial output: {exc}") from exc
        return int(written)

    def read(self) -> bytes:
        if self._in is None:
            raise TransportIOError("Mock serial port is not open")
        try:
            return self._in.readline(MAX_READ_BYTES)
        except OSError as exc:
            raise TransportIOError(f"Failed to read mock serial input: {exc}") from exc


def select_backend(environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return "mock" if MOCK_ENV_VAR in env else "serial"


def open_transport(
    port: str = DEFAULT_PORT,
    baud: int = DEFAULT_BAUD,
    mock_dir: Path | None = None,
    mock_out: str = MOCK_OUT_NAME,
    mock_in: str = MOCK_IN_NAME,
    environ: Mapping[str, str] | None = None,
) -> Transport:
    """Build the backend chosen by the environment and open it.

    Raises TransportOpenError before any byte is exchanged if the port or the
    mock files are unavailable.
    """
    transport: Transport
    if select_backend(environ) == "mock":
        base = mock_dir or Path.cwd()
        transport = MockFileTransport(out_path=base / mock_out, in_path=base / mock_in)
    else:
        transport = SerialTransport(SerialConfig(port=port, baud=baud))
    transport.open()
    return transport
