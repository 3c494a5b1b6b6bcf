# buddhabrot/utils.py
from typing import Tuple


def parse_complex(s: str) -> complex:
    """
    Parse strings like '0.3+0.5j' or '-0.4-0.6j' into a complex number.
    """
    s = s.strip().lower().replace(" ", "")
    if s.endswith("j") and ("+" in s[1:] or "-" in s[1:]):
        return complex(s)
    # allow plain real numbers too
    return complex(float(s), 0.0)


def parse_range(s: str) -> Tuple[float, float]:
    """'-2,1' or '-2:1' -> (-2.0, 1.0)"""
    parts = s.replace(":", ",").split(",")
    if len(parts) != 2:
        raise ValueError(f"Expected 'min,max', got {s!r}")
    return (float(parts[0]), float(parts[1]))


def parse_resolution(s: str) -> Tuple[int, int]:
    """'1920x1080' -> (1920, 1080); a single number gives a square."""
    parts = s.lower().split("x")
    if len(parts) == 1:
        return (int(parts[0]), int(parts[0]))
    if len(parts) != 2:
        raise ValueError(f"Expected 'WIDTHxHEIGHT', got {s!r}")
    return (int(parts[0]), int(parts[1]))
