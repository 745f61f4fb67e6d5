"""
Storefront session CLI.

Signs in to the storefront API and keeps the session on disk between runs.

Usage:
    storefront-session login kamal@example.com
    storefront-session whoami
    storefront-session register --name Kamal --email k@example.com --phone 0771234567 --address "123 Lane"
    storefront-session update-profile --city Kandy
    storefront-session change-password
    storefront-session logout
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

from rich.prompt import Prompt

from shared.config import get_settings
from shared.exceptions import StorefrontError
from shared.http import create_http_client
from modules.auth import (
    AccessDecision,
    AuthApiClient,
    JsonFileStorage,
    SessionManager,
    check_access,
    check_password_policy,
    dashboard_path,
)

from .display import console, show_error, show_session, show_success

logger = logging.getLogger(__name__)

Command = Callable[[argparse.Namespace, SessionManager], Awaitable[int]]

PROFILE_ARGS = ("name", "email", "phone", "address", "city", "state", "zipcode")


def _fail(session: SessionManager, exc: StorefrontError) -> int:
    show_error(session.error or exc.message)
    return 1


def _require_login(session: SessionManager) -> bool:
    if check_access(session) is AccessDecision.ALLOW:
        return True
    show_error("You need to log in first.")
    return False


async def cmd_whoami(args: argparse.Namespace, session: SessionManager) -> int:
    show_session(session.snapshot())
    return 0 if session.is_authenticated else 1


async def cmd_login(args: argparse.Namespace, session: SessionManager) -> int:
    password = args.password or Prompt.ask("Password", password=True)
    try:
        user = await session.login(args.email, password)
    except StorefrontError as e:
        return _fail(session, e)
    show_success(f"Logged in as {user.name}")
    console.print(f"Dashboard: {dashboard_path(user)}")
    return 0


async def cmd_register(args: argparse.Namespace, session: SessionManager) -> int:
    password = args.password or Prompt.ask("Password", password=True)
    user_data = {
        "name": args.name,
        "email": args.email,
        "password": password,
        "phone": args.phone,
        "address": args.address,
        "city": args.city,
        "state": args.state,
        "zipcode": args.zipcode,
        "role": "seller" if args.seller else "customer",
    }
    if args.seller:
        user_data.update(
            businessName=args.business_name,
            businessDescription=args.business_description,
            taxId=args.tax_id,
        )
    try:
        user = await session.register({k: v for k, v in user_data.items() if v is not None})
    except StorefrontError as e:
        return _fail(session, e)
    show_success(f"Account created for {user.name}")
    console.print(f"Dashboard: {dashboard_path(user)}")
    return 0


async def cmd_logout(args: argparse.Namespace, session: SessionManager) -> int:
    session.logout()
    show_success("Logged out")
    return 0


async def cmd_update_profile(args: argparse.Namespace, session: SessionManager) -> int:
    if not _require_login(session):
        return 1
    changes = {field: getattr(args, field) for field in PROFILE_ARGS if getattr(args, field) is not None}
    if not changes:
        show_error("Nothing to update. Pass at least one field, e.g. --city.")
        return 1
    try:
        await session.update_profile(changes)
    except StorefrontError as e:
        return _fail(session, e)
    show_success("Profile updated")
    show_session(session.snapshot())
    return 0


async def cmd_change_password(args: argparse.Namespace, session: SessionManager) -> int:
    if not _require_login(session):
        return 1
    current = Prompt.ask("Current password", password=True)
    new = Prompt.ask("New password", password=True)
    confirm = Prompt.ask("Confirm new password", password=True)
    try:
        check_password_policy(new, confirm)
        await session.update_password(current, new)
    except StorefrontError as e:
        return _fail(session, e)
    show_success("Password updated")
    return 0


COMMANDS: dict[str, Command] = {
    "whoami": cmd_whoami,
    "login": cmd_login,
    "register": cmd_register,
    "logout": cmd_logout,
    "update-profile": cmd_update_profile,
    "change-password": cmd_change_password,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront-session",
        description="Manage your Ayurveda storefront session",
    )
    parser.add_argument("--api-url", type=str, help="Storefront API URL (overrides settings)")
    parser.add_argument("--session-file", type=Path, help="Where the session is stored")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("whoami", help="Show the current session")
    sub.add_parser("logout", help="Sign out and forget the stored session")

    login = sub.add_parser("login", help="Sign in")
    login.add_argument("email")
    login.add_argument("--password", help="Password (prompted when omitted)")

    register = sub.add_parser("register", help="Create an account and sign in")
    register.add_argument("--name", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Password (prompted when omitted)")
    register.add_argument("--phone", required=True)
    register.add_argument("--address", required=True)
    register.add_argument("--city")
    register.add_argument("--state")
    register.add_argument("--zipcode")
    register.add_argument("--seller", action="store_true", help="Register as a seller")
    register.add_argument("--business-name")
    register.add_argument("--business-description")
    register.add_argument("--tax-id")

    profile = sub.add_parser("update-profile", help="Update profile fields")
    for field in PROFILE_ARGS:
        profile.add_argument(f"--{field}")

    sub.add_parser("change-password", help="Change your password")

    return parser


async def run(args: argparse.Namespace) -> int:
    """Wire up the session, restore it, and run one command."""
    settings = get_settings()
    http_client = create_http_client(base_url=args.api_url)
    try:
        session = SessionManager(
            api=AuthApiClient(http_client),
            storage=JsonFileStorage(args.session_file or settings.session_file),
            http_client=http_client,
        )
        await session.restore()
        return await COMMANDS[args.command](args, session)
    finally:
        await http_client.aclose()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose or settings.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
