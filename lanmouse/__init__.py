"""JSON-lines frontend channel, binary event protocol and headless frontend model for LAN mouse and keyboard sharing."""

__version__ = "0.10.0"