"""flowzone: simulate games with bots and classify their difficulty curve."""

__version__ = "0.1.0"
