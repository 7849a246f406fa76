"""HR Hub payroll calculation engine."""

__version__ = "1.0.0"
