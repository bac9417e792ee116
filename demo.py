"""
demo.py

Minimal CLI demo for steptrace.
- Binds the chars capability with tracing()
- Traces the given text (or a default) through the raising API
- Shows the same input through the safe API, including a failure
- Emits the steps to trace.jsonl
"""

import asyncio
import json
import logging
import sys

from chars import CHARS
from steptrace import format_error, tracing


async def run(text):
    api = tracing(CHARS)

    # --- Raising API ---
    steps = await api.trace(text, {"options": {"replace": {" ": "_"}}})

    # --- Safe API: same text, then one that fails ---
    outcome = await api.safe(text=text, config=None)
    failed = await api.safe(text=text + "‽", config=None)

    return steps, outcome, failed


def main():
    args = [arg for arg in sys.argv[1:] if arg != "-v"]
    if "-v" in sys.argv[1:]:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    text = " ".join(args) or "Hello, steptrace"
    steps, outcome, failed = asyncio.run(run(text))

    # --- Trace output ---
    trace_path = "trace.jsonl"
    with open(trace_path, "w") as handle:
        for step in steps:
            handle.write(json.dumps(step) + "\n")

    print(f"\nTraced {len(steps)} step(s):")
    print("".join(step["char"] for step in steps))

    print(f"\nSafe API ok={outcome.ok}, {len(outcome.steps)} step(s)")
    print(f"Safe API on bad input ok={failed.ok}:")
    print(format_error(failed.failure))

    print(f"\nSteps written to: {trace_path}")
    print("Inspect with: cat trace.jsonl | jq .")


if __name__ == "__main__":
    main()
