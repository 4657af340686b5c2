"""Pytest configuration to make the project root importable.

The app is laid out as flat modules next to ``streamlit_app.py``; this lets
``import record_table`` work when tests run from any directory.
"""

import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)
