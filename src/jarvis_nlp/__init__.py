"""
Jarvis NLP - deterministic interpretation of natural-language test commands.

    from jarvis_nlp import CommandAnalyzer

    action = CommandAnalyzer().interpret("run chaos test on orders")
    print(action.to_json())
"""

__version__ = "0.1.0"

from .nlp import CommandAnalyzer, ExecutableAction, PipelineFactory  # noqa: E402

__all__ = ["__version__", "CommandAnalyzer", "ExecutableAction", "PipelineFactory"]
