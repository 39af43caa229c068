"""A client that drives the Open vSwitch command-line tools."""

from __future__ import annotations

import io
import logging
import subprocess
from typing import BinaryIO, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from .actions import _go_quote

logger = logging.getLogger("vswitchctl")

FLOW_FORMAT_NXM_TABLE_ID = "NXM+table_id"
"""Nicira extended match with the ability to place a flow in a specific table."""

FLOW_FORMAT_OXM_OPENFLOW14 = "OXM-OpenFlow14"
"""Open vSwitch extensible match."""

PROTOCOL_OPENFLOW10 = "OpenFlow10"
PROTOCOL_OPENFLOW11 = "OpenFlow11"
PROTOCOL_OPENFLOW12 = "OpenFlow12"
PROTOCOL_OPENFLOW13 = "OpenFlow13"
PROTOCOL_OPENFLOW14 = "OpenFlow14"
PROTOCOL_OPENFLOW15 = "OpenFlow15"

StdinLike = Union[bytes, bytearray, str, BinaryIO]
ExecFunc = Callable[..., bytes]
PipeFunc = Callable[..., bytes]


class CommandError(RuntimeError):
    """Raised when a command fails; holds its trimmed output and the cause."""

    def __init__(self, out: Optional[bytes], err: BaseException) -> None:
        self.out = out
        self.err = err
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.out:
            return f"{self.err}: {self.out.decode(errors='replace')}"
        return str(self.err)


class PipeError(RuntimeError):
    """Raised when a piped command fails; holds its output and the cause."""

    def __init__(self, out: Optional[bytes], err: BaseException) -> None:
        self.out = out
        self.err = err
        super().__init__(str(self))

    def __str__(self) -> str:
        text = (self.out or b"").decode(errors="replace")
        return f"pipe error: {self.err}: {_go_quote(text)}"


def _read_all(stdin: StdinLike) -> bytes:
    if isinstance(stdin, str):
        return stdin.encode()
    if isinstance(stdin, (bytes, bytearray)):
        return bytes(stdin)
    data = stdin.read()
    return data.encode() if isinstance(data, str) else bytes(data)


def shell_exec(cmd: str, *args: str) -> bytes:
    """Run cmd with args and return its combined stdout and stderr.

    A non-zero exit status raises subprocess.CalledProcessError carrying
    the output.
    """
    proc = subprocess.run(
        [cmd, *args], stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
    )
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, [cmd, *args], output=proc.stdout)
    return proc.stdout


def shell_pipe(stdin: StdinLike, cmd: str, *args: str) -> bytes:
    """Run cmd with args, feed it stdin and return stdout followed by stderr."""
    data = _read_all(stdin)
    with subprocess.Popen(
        [cmd, *args],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    ) as proc:
        out, err = proc.communicate(input=data)
    combined = out + err
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, [cmd, *args], output=combined)
    return combined


class _TeeReader(io.RawIOBase):
    """A readable stream that reports every chunk read through it."""

    def __init__(self, source: BinaryIO, on_read: Callable[[bytes], None]) -> None:
        super().__init__()
        self._source = source
        self._on_read = on_read

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        data = self._source.read(size)
        if isinstance(data, str):
            data = data.encode()
        if data:
            self._on_read(data)
        return data

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)


class Client:
    """Runs Open vSwitch commands with a shared set of flags."""

    def __init__(
        self,
        *,
        timeout: Optional[int] = None,
        debug: bool = False,
        sudo: bool = False,
        exec_func: Optional[ExecFunc] = None,
        pipe_func: Optional[PipeFunc] = None,
        flow_format: Optional[str] = None,
        protocols: Optional[Iterable[str]] = None,
        ssl_param: Optional[Tuple[str, str, str]] = None,
        tcp_addr: Optional[str] = None,
    ) -> None:
        self.debug = debug
        self.sudo = sudo
        self.exec_func: ExecFunc = exec_func or shell_exec
        self.pipe_func: PipeFunc = pipe_func or shell_pipe

        flags: List[str] = []
        if timeout is not None:
            flags.append(f"--timeout={timeout}")
        if tcp_addr is not None:
            flags.append(f"--db=tcp:{tcp_addr}")
        self.flags: Tuple[str, ...] = tuple(flags)

        ofctl_flags: List[str] = []
        if flow_format is not None:
            ofctl_flags.append(f"--flow-format={flow_format}")
        if protocols is not None:
            ofctl_flags.append(f"--protocols={','.join(protocols)}")
        if ssl_param is not None:
            pkey, cert, cacert = ssl_param
            ofctl_flags.extend(
                [f"--private-key={pkey}", f"--certificate={cert}", f"--ca-cert={cacert}"]
            )
        self.ofctl_flags: Tuple[str, ...] = tuple(ofctl_flags)

    def _debugf(self, fmt: str, *args: object) -> None:
        if self.debug:
            logger.debug("ovs: " + fmt, *args)

    def _command(self, cmd: str, args: Sequence[str]) -> Tuple[str, List[str]]:
        flags = [*self.flags, *args]
        if self.sudo:
            return "sudo", [cmd, *flags]
        return cmd, flags

    def exec(self, cmd: str, *args: str) -> bytes:
        """Run cmd with the client's flags and args; return trimmed output.

        Any failure is raised as CommandError.
        """
        cmd, flags = self._command(cmd, args)
        self._debugf("exec: %s [%s]", cmd, " ".join(flags))
        try:
            out = self.exec_func(cmd, *flags)
        except Exception as exc:
            raw = getattr(exc, "output", None)
            trimmed = bytes(raw).strip() if isinstance(raw, (bytes, bytearray)) else None
            if trimmed is not None:
                self._debugf("exec: %r", trimmed.decode(errors="replace"))
            raise CommandError(trimmed, exc) from exc
        out = bytes(out).strip() if out is not None else b""
        self._debugf("exec: %r", out.decode(errors="replace"))
        return out

    def pipe(self, stdin: StdinLike, cmd: str, *args: str) -> None:
        """Run cmd with the client's flags and args, feeding it stdin.

        Any failure is raised as PipeError.
        """
        cmd, flags = self._command(cmd, args)
        self._debugf("pipe: %s [%s]", cmd, " ".join(flags))
        self._debugf("bundle:")

        source = stdin if hasattr(stdin, "read") else io.BytesIO(_read_all(stdin))
        reader = _TeeReader(source, lambda chunk: self._debugf("%s", chunk.decode(errors="replace")))
        try:
            self.pipe_func(reader, cmd, *flags)
        except Exception as exc:
            raw = getattr(exc, "output", None)
            out = bytes(raw) if isinstance(raw, (bytes, bytearray)) else None
            self._debugf("pipe error: %s: %r", exc, (out or b"").decode(errors="replace"))
            raise PipeError(out, exc) from exc