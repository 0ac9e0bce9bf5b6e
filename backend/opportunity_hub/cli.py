import argparse
import asyncio
from datetime import datetime
from typing import Any

from opportunity_hub.core import security
from opportunity_hub.db.base import Base
from opportunity_hub.db.session import SessionLocal, engine
from opportunity_hub.models import Coupon, Toolkit, User, UserRole
from opportunity_hub.services.coupons import normalize_code


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")


async def create_user(email: str, name: str | None, admin: bool) -> None:
    async with SessionLocal() as session:
        user = User(email=email.strip().lower(), name=name, role=UserRole.admin if admin else UserRole.member)
        session.add(user)
        await session.commit()
        await session.refresh(user)
    print(f"User {user.id} ({user.role.value})")
    print(f"Access token: {security.create_access_token(str(user.id))}")


async def create_toolkit(title: str, description: str, price: int, original_price: int | None) -> None:
    async with SessionLocal() as session:
        toolkit = Toolkit(title=title, description=description, price=price, original_price=original_price)
        session.add(toolkit)
        await session.commit()
        await session.refresh(toolkit)
    print(f"Toolkit {toolkit.id} priced {toolkit.price}")


async def create_coupon(
    code: str,
    discount_amount: int,
    max_uses: int | None,
    max_uses_per_user: int | None,
    expires_at: datetime | None,
) -> None:
    normalized = normalize_code(code)
    if not normalized:
        raise SystemExit("Coupon code is required")
    async with SessionLocal() as session:
        coupon = Coupon(
            code=normalized,
            discount_amount=discount_amount,
            max_uses=max_uses,
            current_uses=0,
            max_uses_per_user=max_uses_per_user,
            expires_at=expires_at,
        )
        session.add(coupon)
        await session.commit()
        await session.refresh(coupon)
    print(f"Coupon {coupon.code} ({coupon.id})")


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return value


def _non_negative_int(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return value


def _aware_datetime(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        raise argparse.ArgumentTypeError("expiry needs an explicit UTC offset, e.g. 2026-01-31T23:59:00+05:30")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Opportunity Hub management commands")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("create-tables", help="Create all tables (development only; use alembic elsewhere)")

    user = sub.add_parser("create-user", help="Create a user and print an access token")
    user.add_argument("--email", required=True)
    user.add_argument("--name")
    user.add_argument("--admin", action="store_true")

    toolkit = sub.add_parser("create-toolkit", help="Create a toolkit")
    toolkit.add_argument("--title", required=True)
    toolkit.add_argument("--description", default="")
    toolkit.add_argument("--price", type=_non_negative_int, required=True, help="Price in minor units")
    toolkit.add_argument("--original-price", type=_non_negative_int)

    coupon = sub.add_parser("create-coupon", help="Create a flat-discount coupon")
    coupon.add_argument("--code", required=True)
    coupon.add_argument("--discount", type=_positive_int, required=True, help="Discount in minor units")
    coupon.add_argument("--max-uses", type=_positive_int)
    per_user = coupon.add_mutually_exclusive_group()
    per_user.add_argument("--max-uses-per-user", type=_positive_int, default=1)
    per_user.add_argument(
        "--unlimited-per-user",
        dest="max_uses_per_user",
        action="store_const",
        const=None,
        help="Let each user redeem the coupon any number of times",
    )
    coupon.add_argument("--expires-at", type=_aware_datetime)
    return parser


def main(argv: list[str] | None = None) -> None:
    args: Any = build_parser().parse_args(argv)
    if args.command == "create-tables":
        asyncio.run(create_tables())
    elif args.command == "create-user":
        asyncio.run(create_user(args.email, args.name, args.admin))
    elif args.command == "create-toolkit":
        asyncio.run(create_toolkit(args.title, args.description, args.price, args.original_price))
    elif args.command == "create-coupon":
        asyncio.run(
            create_coupon(args.code, args.discount, args.max_uses, args.max_uses_per_user, args.expires_at)
        )


if __name__ == "__main__":
    main()
