#!/usr/bin/env python3
"""
FollowGraph -- operator CLI.

Usage:
  python main.py create-user alice --bio "Hello" --image https://example.com/a.png
  python main.py issue-token alice
  python main.py issue-token alice --lifetime 3600
  python main.py following alice
  python main.py list-users
  python main.py serve --port 8000

Environment variables (see core/config.py):
  HMAC_KEY      Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL  SQLAlchemy URL. Default: sqlite:///followgraph.db
"""

import argparse
import sys
from typing import Optional

import uvicorn
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import issue_token
from core.config import get_settings
from core.context import AppContext, build_context
from social.store import FollowGraph


def _positive_int(value: str) -> int:
    """argparse type: an integer greater than zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number of seconds, got {number}")
    return number


def _create_user(ctx: AppContext, args: argparse.Namespace) -> int:
    store = UserStore(ctx.engine)
    try:
        user_id = store.create_user(User(username=args.username, bio=args.bio, image=args.image))
    except IntegrityError:
        print(f"  [!] Username '{args.username}' is already taken.", file=sys.stderr)
        return 1
    print(user_id)
    return 0


def _issue_token(ctx: AppContext, args: argparse.Namespace) -> int:
    user = UserStore(ctx.engine).get_by_username(args.username)
    if user is None:
        print(f"  [!] No user named '{args.username}'.", file=sys.stderr)
        return 1
    lifetime = ctx.settings.session_length_seconds if args.lifetime is None else args.lifetime
    print(issue_token(user.id, ctx.hmac_key, lifetime_seconds=lifetime))
    return 0


def _following(ctx: AppContext, args: argparse.Namespace) -> int:
    store = UserStore(ctx.engine)
    user = store.get_by_username(args.username)
    if user is None:
        print(f"  [!] No user named '{args.username}'.", file=sys.stderr)
        return 1
    for edge in FollowGraph(ctx.engine).edges_from(user.id):
        followed = store.get_by_id(edge.followed_id)
        if followed is not None:
            print(followed.username)
    return 0


def _list_users(ctx: AppContext, args: argparse.Namespace) -> int:
    for user in UserStore(ctx.engine).list_users():
        print(f"{user.id}  {user.username}")
    return 0


def _serve(args: argparse.Namespace) -> int:
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="followgraph",
        description="Manage users and session tokens, or run the FollowGraph API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-user alice
  python main.py issue-token alice
  curl -H "Authorization: Bearer $(python main.py issue-token alice)" localhost:8000/api/profiles
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_create = sub.add_parser("create-user", help="Insert a user and print its id")
    p_create.add_argument("username")
    p_create.add_argument("--bio", default=None)
    p_create.add_argument("--image", default=None, metavar="URL")

    p_token = sub.add_parser("issue-token", help="Print a signed bearer token for a user")
    p_token.add_argument("username")
    p_token.add_argument(
        "--lifetime",
        type=_positive_int,
        default=None,
        metavar="SECONDS",
        help="Token lifetime in seconds (default: SESSION_LENGTH_SECONDS, 14 days)",
    )

    p_following = sub.add_parser("following", help="List the users a user follows")
    p_following.add_argument("username")

    sub.add_parser("list-users", help="List every user, ordered by username")

    p_serve = sub.add_parser("serve", help="Run the API with uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "serve":
        return _serve(args)

    ctx = build_context(get_settings())
    try:
        handler = {
            "create-user": _create_user,
            "issue-token": _issue_token,
            "following": _following,
            "list-users": _list_users,
        }[args.command]
        return handler(ctx, args)
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
