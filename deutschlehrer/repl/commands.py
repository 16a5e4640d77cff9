#!/usr/bin/env python3
"""
Command definitions for the tutor REPL.
"""

COMMANDS = {
    # Lessons
    'lessons': {
        'help': 'List stored lessons',
        'usage': 'lessons',
        'examples': ['lessons'],
    },
    'add': {
        'help': "Paste a new lesson (finish with a line containing only END)",
        'usage': 'add',
        'examples': ['add'],
    },
    'load': {
        'help': 'Add a lesson from a text file',
        'usage': 'load <file>',
        'examples': ['load ~/lessons/lesson1.txt'],
    },

    # Practice
    'start': {
        'help': 'Start practising a lesson by its number in the list',
        'usage': 'start <n>',
        'examples': ['start 1', 'start 3'],
    },
    'status': {
        'help': 'Show the current lesson, phase and progress',
        'usage': 'status',
        'examples': ['status'],
    },
    'stop': {
        'help': 'Stop the current lesson',
        'usage': 'stop',
        'examples': ['stop'],
    },
    'transcript': {
        'help': 'Show the conversation so far',
        'usage': 'transcript',
        'examples': ['transcript'],
    },

    # Utilities
    'help': {
        'help': 'Show available commands',
        'usage': 'help [command]',
        'examples': ['help', 'help start'],
    },
    'exit': {
        'help': 'Exit the tutor',
        'usage': 'exit',
        'examples': ['exit', 'quit'],
    },
    'quit': {
        'help': 'Exit the tutor (alias for exit)',
        'usage': 'quit',
        'examples': ['quit'],
    },
}


def get_command_help(command: str = None) -> str:
    """Get help text for a command or all commands"""
    if command:
        command = command.lstrip('/')
    if command and command in COMMANDS:
        cmd = COMMANDS[command]
        lines = [
            f"  {command}: {cmd['help']}",
            f"  Usage: {cmd['usage']}",
        ]
        if cmd.get('examples'):
            lines.append(f"  Examples: {', '.join(cmd['examples'])}")
        return '\n'.join(lines)

    groups = {
        'Lessons': ['lessons', 'add', 'load'],
        'Practice': ['start', 'status', 'stop', 'transcript'],
        'Utilities': ['help', 'exit'],
    }

    lines = ["Available commands:\n"]
    for group, cmds in groups.items():
        lines.append(f"  {group}:")
        for cmd in cmds:
            if cmd in COMMANDS:
                lines.append(f"    {cmd:12} - {COMMANDS[cmd]['help']}")
        lines.append("")

    lines.append("During a lesson, everything you type is your answer; prefix commands with / (/status, /stop).")
    lines.append("Type 'help <command>' for detailed help on a specific command.")
    return '\n'.join(lines)
