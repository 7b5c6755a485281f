"""``promptwall-scan``: run the firewall over prompts from the command line.

Examples::

    promptwall-scan "Ignore all previous instructions"
    cat prompts.txt | promptwall-scan --lines
    promptwall-scan --config ./prompt_filters.yaml --pretty "hello"

Prints one JSON document: ``{"results": [...], "summary": {...}}``.
Exit status is 1 if any prompt was blocked, 0 otherwise.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence, TextIO

from promptwall.firewall import PromptFirewall
from promptwall.utils.logger import configure_logging

EXIT_ALLOWED = 0
EXIT_BLOCKED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptwall-scan",
        description="Screen prompts with the PromptWall firewall.",
    )
    parser.add_argument(
        "prompts",
        nargs="*",
        help="Prompts to scan. Reads stdin when none are given.",
    )
    parser.add_argument("--config", "-c", help="Path to a prompt_filters.yaml file.")
    parser.add_argument(
        "--lines",
        action="store_true",
        help="Treat each non-blank stdin line as a separate prompt.",
    )
    parser.add_argument("--pretty", action="store_true", help="Indent the JSON output.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for diagnostics written to stderr (default: WARNING).",
    )
    return parser


def read_prompts(args: argparse.Namespace, stdin: TextIO) -> list[str]:
    if args.prompts:
        return list(args.prompts)
    text = stdin.read()
    if args.lines:
        return [line for line in text.splitlines() if line.strip()]
    return [text] if text.strip() else []


def main(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    args = build_parser().parse_args(argv)
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    # Verdict JSON owns stdout; diagnostics go to stderr.
    configure_logging(log_level=args.log_level, json_output=False, stream=sys.stderr)

    prompts = read_prompts(args, stdin)
    if not prompts:
        print("promptwall-scan: no prompts given", file=sys.stderr)
        return 2

    firewall = PromptFirewall(config_path=args.config)
    results = []
    for index, prompt in enumerate(prompts):
        verdict = firewall.filter(prompt)
        results.append({"index": index, **verdict.to_dict()})

    blocked = sum(1 for r in results if not r["allowed"])
    document = {
        "results": results,
        "summary": {"total": len(results), "allowed": len(results) - blocked, "blocked": blocked},
    }
    json.dump(document, stdout, indent=2 if args.pretty else None)
    stdout.write("\n")
    return EXIT_BLOCKED if blocked else EXIT_ALLOWED


if __name__ == "__main__":
    sys.exit(main())
