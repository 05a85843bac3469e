"""
Command-line runner for the conversation pipeline.

Runs one flow, or the full chat workflow, against the configured backends
and prints the JSON response.

Usage:
    python chat_cli.py ingest USER_ID MESSAGE
    python chat_cli.py complete USER_ID [PROMPT]
    python chat_cli.py synthesize TEXT
    python chat_cli.py chat USER_ID MESSAGE [--no-speak]
"""
import argparse
import json
import sys
import logging
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from services.errors import PipelineError
from services.factory import build_pipeline
from services.workflow import ConversationWorkflow

logger = logging.getLogger(__name__)

FLOWS_BY_COMMAND = {
    "ingest": ["ingest"],
    "complete": ["complete"],
    "synthesize": ["synthesize"],
    "chat": ["ingest", "complete", "synthesize"],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Red AI conversation pipeline")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Store a user message")
    ingest.add_argument("user_id")
    ingest.add_argument("message")

    complete = subparsers.add_parser("complete", help="Complete over stored history")
    complete.add_argument("user_id")
    complete.add_argument("prompt", nargs="?", default="")

    synthesize = subparsers.add_parser("synthesize", help="Synthesize and publish speech")
    synthesize.add_argument("text")

    chat = subparsers.add_parser("chat", help="Ingest, complete, and synthesize")
    chat.add_argument("user_id")
    chat.add_argument("message")
    chat.add_argument("--no-speak", action="store_true", help="Skip speech synthesis")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    flows = list(FLOWS_BY_COMMAND[args.command])
    if args.command == "chat" and args.no_speak:
        flows.remove("synthesize")

    try:
        pipeline = build_pipeline(flows)

        if args.command == "ingest":
            result = pipeline.ingest(args.user_id, args.message)
        elif args.command == "complete":
            result = pipeline.complete(args.user_id, args.prompt)
        elif args.command == "synthesize":
            result = pipeline.synthesize(args.text)
        else:
            result = ConversationWorkflow(pipeline).run(args.user_id, args.message, speak=not args.no_speak)
    except PipelineError as e:
        error = e.error
        print(json.dumps({"error": {"code": error.code, "message": error.message, "details": error.details}}), file=sys.stderr)
        return 1

    print(result.model_dump_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())
