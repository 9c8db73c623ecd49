"""Building the command line that starts a channel's remux process."""

from __future__ import annotations

from typing import Iterable

from zmux.channel import ZmuxChannel

_BINARY = "remux"


def sh_quote(s: str) -> str:
    """Quote ``s`` in single quotes, safe for POSIX shells and systemd ExecStart."""
    if s == "":
        return "''"
    return "'" + s.replace("'", "'\\''") + "'"


class RemuxCommandBuilder:
    """Accumulates remux arguments, omitting empty strings and default booleans."""

    def __init__(self, args: Iterable[str] | None = None) -> None:
        self._args = list(args) if args is not None else [_BINARY]

    @classmethod
    def from_args(cls, args: Iterable[str]) -> RemuxCommandBuilder:
        """Seed a builder with an argv that starts with the binary name; empty means default."""
        args = list(args)
        return cls(args) if args else cls()

    def with_string(self, flag: str, value: str | None) -> RemuxCommandBuilder:
        """Add ``flag value`` unless ``value`` is None or blank."""
        if value is not None and value.strip():
            self._args.extend((flag, value))
        return self

    def with_int(self, flag: str, value: int) -> RemuxCommandBuilder:
        """Add ``flag value`` for an integer value."""
        self._args.extend((flag, str(int(value))))
        return self

    def with_bool_default(self, flag: str, value: bool, default: bool) -> RemuxCommandBuilder:
        """Add the flag only when ``value`` differs from ``default``."""
        if value != default:
            self._args.append(f"{flag}=false" if default else flag)
        return self

    def build_args(self) -> list[str]:
        """Return a copy of the argv."""
        return list(self._args)

    def build_string(self) -> str:
        """Return the argv as one shell-quoted command string."""
        return " ".join(sh_quote(arg) for arg in self._args)


def build_remux_exec_args(channel: ZmuxChannel) -> list[str]:
    """Map a channel onto the remux argv."""
    source, sink = channel.input, channel.output
    return (
        RemuxCommandBuilder()
        .with_int("--id", channel.id)
        .with_string("--input-url", source.url)
        .with_string("--avioflags", source.avioflags)
        .with_int("--probesize", source.probesize)
        .with_int("--analyzeduration", source.analyzeduration)
        .with_string("--fflags", source.fflags)
        .with_int("--max-delay", source.max_delay)
        .with_string("--input-localaddr", source.localaddr)
        .with_int("--timeout", source.timeout)
        .with_string("--rtsp-transport", source.rtsp_transport)
        .with_string("--output-url", sink.url)
        .with_string("--output-localaddr", sink.localaddr)
        .with_int("--pkt-size", sink.pkt_size)
        .with_bool_default("--map-video", sink.map_video, True)
        .with_bool_default("--map-audio", sink.map_audio, True)
        .with_bool_default("--map-data", sink.map_data, True)
        .build_args()
    )


def build_remux_exec_start(channel: ZmuxChannel) -> str:
    """Return the shell-safe ExecStart command for a channel."""
    return RemuxCommandBuilder.from_args(build_remux_exec_args(channel)).build_string()