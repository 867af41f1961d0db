from __future__ import annotations

from dataclasses import dataclass

# struct bintime keeps the fraction of a second as a 64-bit binary fraction.
FRAC_DENOMINATOR = 1 << 64


@dataclass(frozen=True)
class Bintime:
    sec: int
    frac: int

    def seconds(self) -> float:
        return to_seconds(self.sec, self.frac)


def to_seconds(sec: int, frac: int) -> float:
    # int / int is correctly rounded, so all 64 fraction bits take part.
    return sec + frac / FRAC_DENOMINATOR


def bintime_to_ms(bt: Bintime) -> int:
    return max(0, int(bt.seconds() * 1000))
