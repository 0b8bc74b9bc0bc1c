"""
Allow ``python -m dotenv_resolver``.
"""

from __future__ import annotations

import sys

from .cli import main

sys.exit(main())
