"""
CLI command handlers for Jarvis NLP.
"""

import asyncio
import json
import sys
from typing import Iterable, List

from ..config import load_config, ConfigurationError
from ..core.insights import InsightService
from ..nlp import CommandAnalyzer, PipelineFactory
from ..nlp.intent_classifier import INTENT_PATTERNS
from ..utils import setup_logging, get_logger, log_config_info


def handle_cli_command(args) -> int:
    """
    Handle CLI commands based on parsed arguments.

    Returns:
        int: Exit code (0 for success, non-zero for error)
    """
    try:
        config = load_config(args.config)
        setup_logging(config, verbose=args.verbose)
        log_config_info(config)

        if args.list_intents:
            return _handle_list_intents()
        if args.test_llm:
            return asyncio.run(_handle_test_llm(config))

        analyzer = PipelineFactory().create_command_analyzer(config)
        commands = [" ".join(args.command)] if args.command else _read_commands(sys.stdin)

        if args.insights or config.insights.enabled:
            timeout = args.timeout or config.insights.timeout_seconds
            return asyncio.run(_handle_insights(analyzer, commands, config, timeout))

        return _handle_interpret(analyzer, commands, args.analysis)

    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1


def _read_commands(stream: Iterable[str]) -> List[str]:
    return [line.strip() for line in stream if line.strip()]


def _handle_interpret(analyzer: CommandAnalyzer, commands: List[str], full_analysis: bool) -> int:
    logger = get_logger(__name__)

    for command in commands:
        analysis = analyzer.analyze(command)
        payload = analysis.to_dict() if full_analysis else analysis.action.to_dict()
        print(json.dumps(payload, indent=2))

        if not analysis.confident:
            logger.warning(
                f"Low confidence ({analysis.action.confidence:.2f}) for {command!r}; "
                "review the action before executing it"
            )
    return 0


async def _handle_insights(analyzer: CommandAnalyzer, commands: List[str], config, timeout: float) -> int:
    service = InsightService(config.insights)
    try:
        for command in commands:
            result = await analyzer.interpret_with_insights(command, service, timeout=timeout)
            print(json.dumps(result.to_dict(), indent=2))
    finally:
        await service.close()
    return 0


async def _handle_test_llm(config) -> int:
    print(f"🔍 Checking LLM server at {config.insights.base_url}...")
    service = InsightService(config.insights)
    try:
        available = await service.is_available()
    finally:
        await service.close()

    if available:
        print("✅ LLM server is healthy")
        return 0
    print("❌ LLM server is not available")
    return 1


def _handle_list_intents() -> int:
    print("📋 Intents:")
    for intent_type, patterns in INTENT_PATTERNS.items():
        print(f"  {intent_type.value}")
        for pattern in patterns:
            conditions = ", ".join(pattern.conditions)
            print(f"    {pattern.pattern:<22} weight={pattern.weight:<4} [{conditions}]")
    return 0
