#!/usr/bin/env python3
"""
Jarvis NLP - turn plain-language test commands into executable actions.

Development launcher; an installed package provides the ``jarvis-nlp`` command.
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from jarvis_nlp.main import main


if __name__ == "__main__":
    sys.exit(main())
