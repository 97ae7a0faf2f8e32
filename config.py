"""
Configuration management for the WhatsApp notify gateway.

Loads environment variables from .env file and provides process-level
settings. Component settings are parsed in infra.config.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Process-level configuration shared by the gateway and the bridge."""

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Listen ports
    GATEWAY_PORT = int(os.getenv("GATEWAY_PORT", "8000"))
    BRIDGE_PORT = int(os.getenv("BRIDGE_PORT", "8080"))


if __name__ == "__main__":
    print("Configuration loaded:")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"  Log level: {Config.LOG_LEVEL}")
    print(f"  Gateway port: {Config.GATEWAY_PORT}")
    print(f"  Bridge port: {Config.BRIDGE_PORT}")
