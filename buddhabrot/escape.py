"""
Escape-time evaluation for z -> z^2 + c, starting from z = 0.

Two shortcuts avoid iterating points that never escape:

1) Closed-form interior tests for the main cardioid and the period-2 bulb.
   They never accept an escaping point, but they miss most of the smaller
   interior components, so the iteration loop stays the fallback.

2) Cycle detection. A single reference value is compared (exactly) against
   every new orbit value. The reference is refreshed at iteration 4, 8, 16, ...
   so any cycle shorter than the current refresh interval is caught within
   two intervals.
"""

from __future__ import annotations

from typing import Callable, Optional

from buddhabrot.complex_number import ComplexNumber

FIRST_REFRESH = 4
REFRESH_FACTOR = 2


def in_main_cardioid(x: float, y: float) -> bool:
    """q * (q + (x - 1/4)) <= y^2 / 4, with q = (x - 1/4)^2 + y^2."""
    xq = x - 0.25
    q = xq * xq + y * y
    return q * (q + xq) <= 0.25 * y * y


def in_period2_bulb(x: float, y: float) -> bool:
    """(x + 1)^2 + y^2 <= 1/16."""
    xp = x + 1.0
    return xp * xp + y * y <= 0.0625


class CycleDetector:
    """Reference value plus a doubling refresh schedule."""

    def __init__(self, start=None, first_refresh: int = FIRST_REFRESH):
        self.reference = ComplexNumber.zero() if start is None else start
        self.next_refresh = first_refresh

    def check(self, index: int, value) -> bool:
        """Return True if value repeats the reference (the orbit is periodic)."""
        if value == self.reference:
            return True
        if index == self.next_refresh:
            self.reference = value
            self.next_refresh *= REFRESH_FACTOR
        return False


class EscapeEvaluator:
    """
    Escape-time evaluator with instrumentation counters.

    step_fn(current, point) -> ComplexNumber replaces the quadratic map; it is
    used for synthetic maps with known cycles. With step_fn=None the quadratic
    map is iterated on float pairs with the same formulas as ComplexNumber.
    """

    def __init__(self, step_fn: Optional[Callable] = None, use_interior_tests: bool = True):
        self.step_fn = step_fn
        self.use_interior_tests = use_interior_tests
        self.reset_counters()

    def reset_counters(self):
        self.points_evaluated = 0
        self.iterations = 0
        self.inside_rejections = 0
        self.cycles_detected = 0
        self.escaped = 0

    def evaluate(self, point: ComplexNumber, iteration_limit: int, bailout_squared: float) -> Optional[int]:
        """Return the escape index, or None if the orbit does not escape."""
        self.points_evaluated += 1

        if self.use_interior_tests and (
            in_main_cardioid(point.real, point.imaginary) or in_period2_bulb(point.real, point.imaginary)
        ):
            self.inside_rejections += 1
            return None

        if self.step_fn is not None:
            result, steps = self._iterate_generic(point, iteration_limit, bailout_squared)
        else:
            result, steps = self._iterate_quadratic(point, iteration_limit, bailout_squared)

        self.iterations += steps
        if result is not None:
            self.escaped += 1
        return result

    def _iterate_quadratic(self, point, iteration_limit, bailout_squared):
        # CycleDetector.check unrolled onto float pairs; keep the two schedules identical
        cr, ci = point.real, point.imaginary
        zr, zi = 0.0, 0.0
        ref_r, ref_i = 0.0, 0.0
        next_refresh = FIRST_REFRESH

        for i in range(iteration_limit):
            zr, zi = zr * zr - zi * zi + cr, zr * zi + zr * zi + ci
            if zr * zr + zi * zi > bailout_squared:
                return i, i + 1
            if zr == ref_r and zi == ref_i:
                self.cycles_detected += 1
                return None, i + 1
            if i == next_refresh:
                ref_r, ref_i = zr, zi
                next_refresh *= REFRESH_FACTOR

        return None, iteration_limit

    def _iterate_generic(self, point, iteration_limit, bailout_squared):
        current = ComplexNumber.zero()
        detector = CycleDetector(current)

        for i in range(iteration_limit):
            current = self.step_fn(current, point)
            if current.magnitude_squared() > bailout_squared:
                return i, i + 1
            if detector.check(i, current):
                self.cycles_detected += 1
                return None, i + 1

        return None, iteration_limit


def escape_time(point: ComplexNumber, iteration_limit: int, bailout_squared: float = 4.0) -> Optional[int]:
    return EscapeEvaluator().evaluate(point, iteration_limit, bailout_squared)
