"""USD-BRL exchange rate service and one-shot client."""

__version__ = "0.1.0"
