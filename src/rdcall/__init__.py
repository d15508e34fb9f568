"""rdcall: command-line client for the Rundeck job orchestration API."""

__version__ = "0.3.0"

__all__ = ["__version__"]
