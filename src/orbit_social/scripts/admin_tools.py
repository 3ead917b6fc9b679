"""Operator commands: manage roles and repair denormalized counters."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from orbit_social.db.session import SessionLocal
from orbit_social.models import Comment, Follow, Like, Post, Role, User
from orbit_social.services.user_service import get_user_by_login


def set_role(db: Session, identifier: str, role: Role) -> User:
    """Give the account matching ``identifier`` (email or username) ``role``."""
    user = get_user_by_login(db, identifier)
    if user is None:
        raise LookupError(f"No account matches {identifier!r}")
    user.role = role
    db.commit()
    return user


def recount(db: Session) -> None:
    """Recompute every counter column from the rows it summarizes."""
    db.execute(
        update(User).values(
            posts_count=select(func.count(Post.id))
            .where(Post.user_id == User.id)
            .scalar_subquery(),
            followers_count=select(func.count(Follow.id))
            .where(Follow.following_id == User.id)
            .scalar_subquery(),
            following_count=select(func.count(Follow.id))
            .where(Follow.follower_id == User.id)
            .scalar_subquery(),
        )
    )
    db.execute(
        update(Post).values(
            like_count=select(func.count(Like.id)).where(Like.post_id == Post.id).scalar_subquery(),
            comment_count=select(func.count(Comment.id))
            .where(Comment.post_id == Post.id)
            .scalar_subquery(),
        )
    )
    db.commit()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Orbit Social maintenance commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    promote = subparsers.add_parser("promote", help="Grant the ADMIN role")
    promote.add_argument("identifier", help="Email or username")
    demote = subparsers.add_parser("demote", help="Revoke the ADMIN role")
    demote.add_argument("identifier", help="Email or username")
    subparsers.add_parser("recount", help="Rebuild denormalized counters")

    args = parser.parse_args(argv)
    with SessionLocal() as db:
        try:
            if args.command == "recount":
                recount(db)
                print("[admin] counters rebuilt")
            else:
                role = Role.ADMIN if args.command == "promote" else Role.USER
                user = set_role(db, args.identifier, role)
                print(f"[admin] {user.username} is now {role.value}")
        except LookupError as exc:
            print(f"[admin] ERROR: {exc}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
