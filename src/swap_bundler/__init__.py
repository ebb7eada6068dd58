"""Bundle several token swaps into one atomic Safe transaction."""

__version__ = "0.1.0"
