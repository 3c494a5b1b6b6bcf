from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ComplexNumber:
    """Immutable complex value. Equality is exact (no tolerance)."""

    real: float
    imaginary: float

    @classmethod
    def zero(cls) -> ComplexNumber:
        return cls(0.0, 0.0)

    @classmethod
    def from_complex(cls, z: complex) -> ComplexNumber:
        return cls(float(z.real), float(z.imag))

    def __add__(self, other: ComplexNumber) -> ComplexNumber:
        return ComplexNumber(self.real + other.real, self.imaginary + other.imaginary)

    def __mul__(self, other: ComplexNumber) -> ComplexNumber:
        real = self.real * other.real - self.imaginary * other.imaginary
        imaginary = self.real * other.imaginary + other.real * self.imaginary
        return ComplexNumber(real, imaginary)

    def __complex__(self) -> complex:
        return complex(self.real, self.imaginary)

    def __str__(self) -> str:
        return f"({self.real}, {self.imaginary})"

    def magnitude_squared(self) -> float:
        return self.real * self.real + self.imaginary * self.imaginary
