"""
Setup verification script for the Inkwell backend.
Checks all dependencies and services are properly configured.
"""
import asyncio
import sys
import os
from typing import List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


async def check_python_version() -> bool:
    """Check Python version is 3.11+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 11:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    else:
        print_status(f"Python version {version.major}.{version.minor} (requires 3.11+)", False)
        return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "asyncpg",
        "httpx",
        "pydantic_settings",
        "textstat",
        "alembic",
    ]

    all_installed = True
    for package in required_packages:
        try:
            __import__(package)
            print_status(f"Package '{package}' installed", True)
        except ImportError:
            print_status(f"Package '{package}' missing", False)
            all_installed = False

    return all_installed


async def check_env_file() -> bool:
    """Check if .env file exists."""
    if os.path.exists(".env"):
        print_status(".env file exists", True)
        return True
    else:
        print_status(".env file missing (defaults will be used)", False)
        return False


async def check_database() -> bool:
    """Check the configured database answers a trivial query."""
    from sqlalchemy import text

    from inkwell.config import settings
    from inkwell.database import engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print_status(f"Database reachable ({settings.DATABASE_URL.split('@')[-1]})", True)
        return True
    except Exception as e:
        print_status(f"Database connection failed: {str(e)}", False)
        print(f"  {YELLOW}Set DATABASE_URL in .env to a reachable PostgreSQL (or sqlite+aiosqlite) database{RESET}")
        return False
    finally:
        await engine.dispose()


async def check_language_tool() -> bool:
    """Check LanguageTool answers a sample request."""
    from inkwell.services.language_tool import LanguageToolClient

    client = LanguageToolClient(timeout=5)
    reachable = await client.check_health()
    print_status(f"LanguageTool at {client.base_url}: {'OK' if reachable else 'unreachable'}", reachable)
    if not reachable:
        print(f"  {YELLOW}Set LANGUAGE_TOOL_URL or run a local server:{RESET}")
        print(f"  {YELLOW}docker run -p 8010:8010 erikvl87/languagetool{RESET}")
    return reachable


async def check_llm() -> bool:
    """Check an API key is configured for Max mode and the assistant features."""
    from inkwell.config import settings

    configured = bool(settings.AI_API_KEY)
    print_status(
        f"AI_API_KEY {'configured' if configured else 'missing'} "
        f"(models: {settings.AI_MODEL_LARGE}, fallback {settings.AI_MODEL_FALLBACK_LARGE})",
        configured,
    )
    return configured


async def main():
    """Run all verification checks."""
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}Inkwell Backend - Setup Verification{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

    checks: List[Tuple[str, callable]] = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("Environment File", check_env_file),
        ("Database", check_database),
        ("LanguageTool", check_language_tool),
        ("LLM", check_llm),
    ]

    results = []

    for check_name, check_func in checks:
        print(f"\n{BLUE}Checking {check_name}...{RESET}")
        try:
            result = await check_func()
            results.append(result)
        except Exception as e:
            print_status(f"Error during check: {str(e)}", False)
            results.append(False)

    # Summary
    print(f"\n{BLUE}{'='*60}{RESET}")
    passed = sum(results)
    total = len(results)

    if passed == total:
        print(f"{GREEN}✓ All checks passed! ({passed}/{total}){RESET}")
        print(f"\n{GREEN}You're ready to run the backend:{RESET}")
        print(f"  uvicorn inkwell.main:app --reload")
    else:
        print(f"{RED}✗ Some checks failed ({passed}/{total} passed){RESET}")
        print(f"\n{YELLOW}Please fix the issues above before running the backend.{RESET}")
        sys.exit(1)

    print(f"{BLUE}{'='*60}{RESET}\n")


if __name__ == "__main__":
    asyncio.run(main())
