#!/usr/bin/env python3
"""Send a sample verification email and print the result. Use to debug Mailgun delivery.
Usage: from project root, run:
  python scripts/test_verification_email.py someone@example.com
"""
import os
import sys

# Project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return 2
    to_email = sys.argv[1].strip()
    from pathlib import Path
    from app.config import _env_path, get_settings
    from app.errors import NotificationError
    from app.services.notifications import EmailNotifier, build_verification_link

    s = get_settings()
    print(f"{s.app_name} verification email test")
    print(f"  .env path: {_env_path} (exists: {Path(_env_path).exists()})")
    print("  Config:")
    print(f"    MAILGUN_DOMAIN={s.mailgun_domain!r}")
    print(f"    MAILGUN_FROM_EMAIL={s.mailgun_from_email!r}")
    print(f"    MAILGUN_API_KEY={'set (hidden)' if s.mailgun_api_key else '(empty)'}")
    print(f"  Sample link: {build_verification_link('sample-token', s)}")
    print(f"  Sending to: {to_email}")
    print("-" * 50)

    try:
        EmailNotifier(s).send_verification(to_email, "sample-token")
    except NotificationError as e:
        print(f"Result: FAILED - {e}. See log lines above for cause.")
        return 1
    print("Result: SUCCESS - Mailgun accepted the message.")
    print("  If you do not receive it: check spam; if using a sandbox domain, add this address in Mailgun Dashboard > Authorized recipients.")
    return 0


if __name__ == "__main__":
    import logging
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
