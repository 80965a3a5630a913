"""Terminal domain models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntFlag


class TerminalMode(IntFlag):
    NONE = 0
    RAW = 1
    ECHO = 2
    CHAR = 4
    OTHER = 8


class InterruptKind(str, Enum):
    INTERRUPT = "interrupt"
    END_OF_TRANSMISSION = "end-of-transmission"


INTERRUPT_BYTES: dict[int, InterruptKind] = {
    0x03: InterruptKind.INTERRUPT,
    0x04: InterruptKind.END_OF_TRANSMISSION,
}


@dataclass(frozen=True)
class InterruptEvent:
    kind: InterruptKind
    sequence: int = 0

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class TerminalState:
    """Snapshot of the attributes returned by ``termios.tcgetattr``."""

    iflag: int
    oflag: int
    cflag: int
    lflag: int
    ispeed: int
    ospeed: int
    cc: tuple[int | bytes, ...] = field(default_factory=tuple)

    @classmethod
    def from_attrs(cls, attrs: list) -> TerminalState:
        iflag, oflag, cflag, lflag, ispeed, ospeed, cc = attrs
        return cls(
            iflag=iflag,
            oflag=oflag,
            cflag=cflag,
            lflag=lflag,
            ispeed=ispeed,
            ospeed=ospeed,
            cc=tuple(cc),
        )

    def to_attrs(self) -> list:
        return [
            self.iflag,
            self.oflag,
            self.cflag,
            self.lflag,
            self.ispeed,
            self.ospeed,
            list(self.cc),
        ]

    def with_cc(self, index: int, value: int) -> TerminalState:
        cc = list(self.cc)
        # VMIN/VTIME take integers; the other slots hold single bytes.
        cc[index] = value
        return replace(self, cc=tuple(cc))
