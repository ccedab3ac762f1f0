"""Answer generation, validation and scoring pipeline."""

__version__ = "0.1.0"
