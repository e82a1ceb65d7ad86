"""tarsgen: run an interface-definition code generator and mirror its output."""

__version__ = "0.1.0"
