"""agentfence -- egress policy compilation and sandboxed command execution for AI agents."""

__version__ = "0.1.0"
