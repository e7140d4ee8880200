"""
Calculator Agent - Demonstrates Patrol Policy-Gated Evaluation
==============================================================

This example plays the part of an agent that receives arithmetic snippets
from an untrusted source (an LLM, a chat user) and evaluates them. Only the
math module, a couple of pure builtins and a host-supplied helper are
allowed; everything else is refused before it runs, and runaway code is
killed when its time is up.

Flow:
    snippet
       ↓
    parse ──✗──→ Error(SYNTAX)
       ↓
    policy check ──✗──→ Error(PERMISSION)   ← never executed
       ↓
    worker process (killed at the deadline)
       ↓
    Ok(value) / Error(TIMEOUT | UNDEFINED_* | OPAQUE)

Requirements: None beyond patrol itself

Usage:
    python main.py
"""

import io

from patrol import create_evaluator, make_config, make_policy, setup_logging


def to_celsius(fahrenheit):
    return (fahrenheit - 32) * 5 / 9


SNIPPETS = [
    "math.sqrt(2) * 10",
    "round(to_celsius(98.6), 1)",
    "sum(i * i for i in range(10))",
    "print('thinking...')\nmax([3, 1, 4, 1, 5])",
    "import os\nos.system('rm -rf /')",
    "open('/etc/passwd').read()",
    "sum(range(10 ** 9))",
    "math.cbrtt(27)",
    "total = (1 +",
    "while True:\n    pass",
]


def main():
    setup_logging("WARNING")

    print("=" * 60)
    print("🛡️  Patrol Calculator Agent Demo")
    print("=" * 60)

    transcript = io.StringIO()
    policy = make_policy({
        "allowed_local": ["round", "sum", "max", "print", "to_celsius"],
        "allowed_remote": {"math": "all"},
        "range_max": 1000,
    })
    evaluator = create_evaluator(make_config(
        policy=policy,
        timeout=1.0,
        context={"to_celsius": to_celsius},
        output_sink=transcript,
    ))

    for snippet in SNIPPETS:
        outcome = evaluator(snippet)
        shown = snippet.replace("\n", "; ")
        if outcome.ok:
            print(f"✅ {shown:<40} -> {outcome.value!r}")
        else:
            print(f"❌ {shown:<40} -> {outcome.kind.value}: {outcome.detail!r}")

    print("\n📝 Output captured from the workers:")
    print(transcript.getvalue())


if __name__ == "__main__":
    main()
