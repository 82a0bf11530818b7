"""
Command-line argument parser for Jarvis NLP.
"""

import argparse

from .. import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="jarvis-nlp",
        description="Jarvis NLP - turn plain-language test commands into executable actions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jarvis-nlp run chaos test on orders          # Print the action as JSON
  jarvis-nlp --analysis analyze why user failed
  jarvis-nlp --insights run load test on gateway
  echo "check health of products" | jarvis-nlp  # One command per input line
  jarvis-nlp --list-intents
        """
    )

    parser.add_argument(
        "command",
        nargs="*",
        help="Command text; read one command per line from stdin when omitted"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Jarvis NLP {__version__}"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging on stderr"
    )

    parser.add_argument(
        "--analysis",
        action="store_true",
        help="Print every pipeline stage instead of just the action"
    )

    parser.add_argument(
        "--insights",
        action="store_true",
        help="Ask the LLM server for commentary on the action"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Time box for the LLM insight (defaults to insights.timeout_seconds)"
    )

    parser.add_argument(
        "--test-llm",
        action="store_true",
        help="Check that the LLM insight server is reachable and exit"
    )

    parser.add_argument(
        "--list-intents",
        action="store_true",
        help="List intents with their patterns and exit"
    )

    return parser


def parse_args(args=None):
    """Parse command line arguments."""
    parser = create_parser()
    return parser.parse_args(args)
