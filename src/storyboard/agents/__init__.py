"""AI agents for script analysis."""

from .base import BaseAgent
from .script import ScriptAgent, ScriptInput

__all__ = ["BaseAgent", "ScriptAgent", "ScriptInput"]
