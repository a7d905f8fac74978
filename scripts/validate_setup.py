"""Validate that the system is properly set up and configured."""

import asyncio
import sys
from pathlib import Path

import httpx

from orderflow.config import get_settings
from orderflow.state import RedisStore


async def check_python_version() -> bool:
    """Check if Python version is 3.11+."""
    print("Checking Python version...")

    version = sys.version_info
    if version.major < 3 or (version.major == 3 and version.minor < 11):
        print(f"  ❌ Python {version.major}.{version.minor} detected")
        print("  → Python 3.11+ required")
        return False

    print(f"  ✓ Python {version.major}.{version.minor} detected")
    return True


async def check_settings() -> bool:
    """Check that settings load and report the effective configuration."""
    print("\nChecking configuration...")

    if not Path(".env").exists():
        print("  ℹ️  No .env file, using environment variables and defaults")

    settings = get_settings()
    print(f"  ✓ Environment: {settings.environment}")
    print(f"  ✓ Store backend: {settings.store_backend}")
    print(f"  ✓ Log level: {settings.log_level} ({settings.log_format})")
    return True


async def check_project_structure() -> bool:
    """Check if all required directories and files exist."""
    print("\nChecking project structure...")

    required_paths = [
        "orderflow/main.py",
        "orderflow/api/routes.py",
        "orderflow/state/workflow.py",
        "orderflow/state/store.py",
        "orderflow/state/redis_store.py",
        "orderflow/services/assignment.py",
        "orderflow/services/reviews.py",
        "orderflow/services/favorites.py",
        "pyproject.toml",
    ]

    missing = [path for path in required_paths if not Path(path).exists()]

    if missing:
        print("  ❌ Missing files:")
        for path in missing:
            print(f"     - {path}")
        return False

    print("  ✓ All required files present")
    return True


async def check_store() -> bool:
    """Check that Redis answers when it is the configured backend."""
    print("\nChecking store...")

    settings = get_settings()
    if settings.store_backend != "redis":
        print("  ℹ️  In-memory store, nothing to connect to")
        return True

    store = RedisStore()
    try:
        await store.connect()
        await store.ping()
    except Exception as e:
        print(f"  ❌ Redis not reachable at {settings.redis_url}: {e}")
        return False
    finally:
        await store.disconnect()

    print(f"  ✓ Redis reachable at {settings.redis_url}")
    return True


async def check_api() -> bool:
    """Check whether a running API answers its health endpoint."""
    print("\nChecking API...")

    settings = get_settings()
    url = f"http://localhost:{settings.api_port}/health"
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(url, timeout=5.0)
    except httpx.TransportError as e:
        print(f"  ℹ️  API not running ({e})")
        print("  → Run: uvicorn orderflow.main:app --reload")
        return True

    if response.status_code == 200:
        print("  ✓ API is responding")
    else:
        print(f"  ⚠️  API returned status {response.status_code}")
    return True


async def main() -> None:
    """Run all validation checks."""
    print("\n" + "=" * 60)
    print("  Orderflow - Setup Validation")
    print("=" * 60 + "\n")

    checks = [
        ("Python Version", check_python_version),
        ("Configuration", check_settings),
        ("Project Structure", check_project_structure),
        ("Store", check_store),
        ("API", check_api),
    ]

    results = []
    for name, check in checks:
        try:
            result = await check()
            results.append((name, result))
        except Exception as e:
            print(f"  ❌ Error during {name} check: {e}")
            results.append((name, False))

    print("\n" + "=" * 60)
    print("  Validation Summary")
    print("=" * 60)

    all_passed = True
    for name, passed in results:
        status = "✓" if passed else "❌"
        print(f"  {status} {name}")
        if not passed:
            all_passed = False

    print("=" * 60)

    if all_passed:
        print("\n✅ All checks passed! System is ready.")
        print("\nNext steps:")
        print("  1. Seed data: python scripts/seed_data.py")
        print("  2. Start the API: uvicorn orderflow.main:app --reload")
        print("  3. View docs: http://localhost:8000/docs")
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        sys.exit(1)

    print()


if __name__ == "__main__":
    asyncio.run(main())
