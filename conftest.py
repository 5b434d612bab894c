"""Global pytest configuration."""

import os
import tempfile
from pathlib import Path

# Keep tests away from real keys and the user's credential file
os.environ.setdefault(
    "WANDERMIND_CREDENTIAL_STORE_PATH",
    str(Path(tempfile.gettempdir()) / "wandermind-tests" / "credentials.json"),
)
for _key in ("WANDERMIND_GROQ_API_KEY", "WANDERMIND_GEMINI_API_KEY"):
    os.environ.pop(_key, None)
