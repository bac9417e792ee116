"""
reverse.py

Universal capability without options: one step per character, last first.
"""

from steptrace import Capability


async def execute(text, config):
    return [
        {
            "step": index + 1,
            "loc": {
                "start": {"line": 1, "column": len(text) - 1 - index},
                "end": {"line": 1, "column": len(text) - index},
            },
            "char": char,
        }
        for index, char in enumerate(reversed(text))
    ]


REVERSE = Capability(identity="reverse", domains=(), execute=execute)
