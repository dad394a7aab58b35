"""Scrape one profile from the command line.

    python -m profileScraper --url https://www.linkedin.com/in/username

Credentials come from LINKEDIN_EMAIL / LINKEDIN_PASSWORD (environment or
.env). A verification challenge opens a visible browser and waits for Enter.
"""
import argparse
import asyncio
import json
import logging
import os

from dotenv import load_dotenv

from .browser import PersistentProfileLauncher
from .errors import AuthenticationError
from .models import Credentials, TargetReference
from .orchestrator import ProfileOrchestrator
from .verification import ConsoleSignal


async def scrape(url: str, include_about: bool = False, session_timeout: float = 300.0) -> dict:
    email = os.getenv("LINKEDIN_EMAIL")
    password = os.getenv("LINKEDIN_PASSWORD")
    if not email or not password:
        raise RuntimeError(
            "LINKEDIN_EMAIL and LINKEDIN_PASSWORD must be set in your .env file "
            "or as environment variables."
        )

    orchestrator = await ProfileOrchestrator.open(
        Credentials(identifier=email, secret=password),
        TargetReference(address=url),
        PersistentProfileLauncher(),
        ConsoleSignal(),
        session_timeout=session_timeout,
        verification_timeout=None,
    )
    async with orchestrator:
        if include_about:
            await orchestrator.extract_about()
        profile = await orchestrator.run()

    result = profile.model_dump()
    result["errors"] = [str(e) for e in orchestrator.errors]
    return result


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description="LinkedIn Profile Scraper")
    parser.add_argument("--url", type=str, required=True, help="LinkedIn profile URL to scrape")
    parser.add_argument("--output", type=str, help="Save output to JSON file")
    parser.add_argument("--about", action="store_true", help="Also read the About section")
    parser.add_argument("--timeout", type=float, default=300.0, help="Whole-session limit in seconds")
    args = parser.parse_args()

    try:
        data = asyncio.run(scrape(args.url, include_about=args.about, session_timeout=args.timeout))
    except AuthenticationError as e:
        print(f"Login failed ({e.kind.value}): {e}")
        return 1

    output = json.dumps(data, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Saved to {args.output}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
