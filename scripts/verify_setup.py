#!/usr/bin/env python3
"""
Setup Verification Script

Checks configuration and external services before taking calls.
Run this after filling in your .env file.

Usage:
    python scripts/verify_setup.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

DEEPGRAM_PROJECTS_URL = "https://api.deepgram.com/v1/projects"
ELEVENLABS_USER_URL = "https://api.elevenlabs.io/v1/user"

REQUIRED_VARS = [
    ("REDIS_URL", "Slot counters and reservation locks"),
    ("DEEPGRAM_API_KEY", "Speech-to-text"),
    ("ELEVENLABS_API_KEY", "Text-to-speech"),
]

SHEETS_VARS = [
    "SPREADSHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_PRIVATE_KEY",
]


def print_header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f" {title}")
    print(f"{'='*60}")


def print_result(name: str, success: bool, message: str = "") -> None:
    status = "[PASS]" if success else "[FAIL]"
    color = "\033[92m" if success else "\033[91m"
    reset = "\033[0m"
    msg = f" - {message}" if message else ""
    print(f"  {color}{status}{reset} {name}{msg}")


def mask(value: str) -> str:
    """Hide all but the edges of a secret."""
    return f"{value[:4]}...{value[-4:]}" if len(value) > 12 else "***"


def check_required_vars() -> dict[str, bool]:
    """Report which required variables are set."""
    results = {}

    for var, purpose in REQUIRED_VARS:
        value = os.getenv(var, "")
        if not value:
            print_result(var, False, f"Not set - {purpose}")
            results[var] = False
            continue

        shown = mask(value) if "KEY" in var else value
        print_result(var, True, f"Set ({shown})")
        results[var] = True

    return results


def check_sheets_vars() -> bool:
    """Bookings are only written to a sheet when all three are present."""
    missing = [var for var in SHEETS_VARS if not os.getenv(var)]
    if missing:
        print_result("Google Sheets", False, f"Missing: {', '.join(missing)} (bookings not persisted)")
        return False

    print_result("Google Sheets", True, "Credentials present")
    return True


def check_nlu_backend() -> bool:
    backend = os.getenv("NLU_BACKEND", "regex").lower()
    if backend == "claude" and not os.getenv("ANTHROPIC_API_KEY"):
        print_result("NLU backend", False, "claude selected but ANTHROPIC_API_KEY not set")
        return False

    print_result("NLU backend", True, backend)
    return True


async def check_redis() -> bool:
    """Verify Redis connection."""
    from tablebook.infra.redis import RedisClient

    client = await RedisClient.get_client()
    await RedisClient.close()

    if client is None:
        print_result("Redis", False, "Connection failed (locks will be refused)")
        return False

    print_result("Redis", True, "Connection successful")
    return True


async def check_api_key(name: str, url: str, headers: dict) -> bool:
    """Make a cheap authenticated GET to validate an API key."""
    import httpx

    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        print_result(name, False, f"Not reachable: {e}")
        return False

    if response.status_code in (401, 403):
        print_result(name, False, "Invalid API key")
        return False
    if response.status_code >= 400:
        print_result(name, False, f"Responded with {response.status_code}")
        return False

    print_result(name, True, "Key validated successfully")
    return True


async def main() -> int:
    """Run all verification checks."""
    print("\n" + "="*60)
    print(" Table Booking Assistant - Setup Verification")
    print("="*60)

    print_header("Required Environment Variables")
    var_results = check_required_vars()

    print_header("Optional Features")
    check_sheets_vars()
    nlu_ok = check_nlu_backend()

    print_header("Service Connections")
    services_ok = True

    if var_results.get("REDIS_URL"):
        services_ok &= await check_redis()

    if var_results.get("DEEPGRAM_API_KEY"):
        services_ok &= await check_api_key(
            "Deepgram",
            DEEPGRAM_PROJECTS_URL,
            {"Authorization": f"Token {os.environ['DEEPGRAM_API_KEY']}"},
        )

    if var_results.get("ELEVENLABS_API_KEY"):
        services_ok &= await check_api_key(
            "ElevenLabs",
            ELEVENLABS_USER_URL,
            {"xi-api-key": os.environ["ELEVENLABS_API_KEY"]},
        )

    print_header("Summary")

    if not all(var_results.values()) or not nlu_ok or not services_ok:
        print("\n  \033[91mSome required checks failed.\033[0m")
        print("  Fix the issues above before taking calls.\n")
        return 1

    print("\n  \033[92mAll checks passed!\033[0m")
    print("  Start the server with:")
    print("    uvicorn tablebook.main:app --reload\n")
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
