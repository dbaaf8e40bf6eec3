"""
Render service configuration, read from the environment (and .env).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

HOST = os.getenv("TEX2PNG_HOST", "127.0.0.1")
PORT = int(os.getenv("TEX2PNG_PORT", "3000"))

# Process record lives next to the service code unless overridden
PID_FILE = Path(
    os.getenv("TEX2PNG_PID_FILE", Path(__file__).resolve().parent / "tex2png-server.pid")
).expanduser()
