"""
Interactive REPL for lesson practice.
"""

from .session import TutorREPL
from .commands import COMMANDS, get_command_help

__all__ = ['TutorREPL', 'COMMANDS', 'get_command_help']
