"""
Console entry point for Jarvis NLP.
"""

import sys

from .cli import parse_args, handle_cli_command


def main() -> int:
    """Main entry point for the jarvis-nlp command."""
    try:
        args = parse_args()
        return handle_cli_command(args)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
