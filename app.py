"""
Serverless entry point (Vercel Python runtime or any ASGI host).

The host detects the ASGI app through the module-level ``app`` variable.
"""
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from gemini_proxy.api.app import app  # noqa: E402,F401
