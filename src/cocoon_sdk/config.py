"""Cocoon API configuration constants."""

import os
from importlib.metadata import PackageNotFoundError, version

API_URL = os.environ.get("COCOON_API_URL", "https://api.cocoon.io/v1/")
ACCESS_TOKEN_ENV = "COCOON_ACCESS_TOKEN"

try:
    USER_AGENT = f"cocoon-sdk-python/{version('cocoon-sdk')}"
except PackageNotFoundError:
    USER_AGENT = "cocoon-sdk-python"

DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_POLL_INTERVAL = 10.0  # seconds
DEFAULT_MAX_WAIT_TIME = 3600.0  # seconds

ACCESS_TOKEN_PARAMETER = "access_token"
