"""
Platform administration commands.

Usage:
    python -m immopro.cli list-users                       List every account and its role
    python -m immopro.cli plans list                       List the subscription plans
    python -m immopro.cli plans upsert NAME PRICE_ID EUROS Create or update a plan
    python -m immopro.cli plans disable PRICE_ID           Hide a plan from new customers
    python -m immopro.cli plans enable PRICE_ID            Offer a plan again
    python -m immopro.cli set-owner EMAIL                  Make a user the owner of an agency
    python -m immopro.cli reset-employee-password EMAIL    Print a new password for a user
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from immopro.core.database import async_session_maker
from immopro.core.database.entities.subscriptions import SubscriptionPlan
from immopro.core.database.entities.users import User
from immopro.core.database.repositories.subscriptions import SubscriptionPlanRepository
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import UserRole
from immopro.server.core.security import generate_strong_password, hash_password
from immopro.server.exception_handlers.errors import ImmoProError, InvalidRequestError, NotFoundError

logger = get_logger(__name__)


async def list_users(session: AsyncSession) -> List[User]:
    """Every account, newest first."""
    result = await session.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def upsert_plan(
    session: AsyncSession,
    name: str,
    price_id: str,
    amount: int,
    display_name: Optional[str] = None,
    interval: str = "month",
    max_properties: Optional[int] = None,
    max_contacts: Optional[int] = None,
    max_employees: Optional[int] = None,
    features: Optional[List[str]] = None,
) -> Tuple[SubscriptionPlan, bool]:
    """
    Create the plan sold under ``price_id``, or update it when it exists.

    Args:
        session: Database session
        name: Plan key (starter, pro, premium)
        price_id: Stripe price identifier, ``price_...``
        amount: Price in cents
        display_name: Name shown to customers, defaults to the capitalized key
        interval: ``month`` or ``year``
        max_properties: Property limit, ``None`` for unlimited
        max_contacts: Contact limit, ``None`` for unlimited
        max_employees: Employee limit, ``None`` for unlimited
        features: Marketing bullet points

    Returns:
        The stored plan and whether it was created

    Raises:
        InvalidRequestError: When the price id or the amount is malformed
    """
    if not price_id.startswith("price_"):
        raise InvalidRequestError(f"Stripe price ids start with 'price_', got {price_id!r}")
    if amount < 0:
        raise InvalidRequestError("The plan amount cannot be negative")
    if interval not in ("month", "year"):
        raise InvalidRequestError(f"Unknown billing interval {interval!r}")

    plans = SubscriptionPlanRepository(session)
    plan = await plans.get_by_price_id(price_id)
    created = plan is None
    if plan is None:
        plan = SubscriptionPlan(name=name, display_name="", stripe_price_id=price_id, amount=amount)

    plan.name = name
    plan.display_name = display_name or plan.display_name or name.capitalize()
    plan.amount = amount
    plan.interval = interval
    plan.max_properties = max_properties
    plan.max_contacts = max_contacts
    plan.max_employees = max_employees
    if features is not None:
        plan.features = features

    plan = await plans.create(plan) if created else await plans.update(plan)
    logger.info(f"Plan {price_id} {'created' if created else 'updated'}")
    return plan, created


async def set_plan_active(session: AsyncSession, price_id: str, active: bool) -> SubscriptionPlan:
    """
    Offer or withdraw a plan.

    Existing subscriptions keep their plan; a disabled plan is only left out
    of the public plan list.
    """
    plans = SubscriptionPlanRepository(session)
    plan = await plans.get_by_price_id(price_id)
    if plan is None:
        raise NotFoundError(f"No plan is sold under {price_id}")
    plan.is_active = active
    plan = await plans.update(plan)
    logger.info(f"Plan {price_id} {'enabled' if active else 'disabled'}")
    return plan


async def set_user_as_owner(session: AsyncSession, email: str) -> Tuple[User, bool]:
    """
    Give a user the OWNER role so that they can manage employees.

    A promoted employee leaves their former agency and runs their own.

    Returns:
        The user and whether their role changed
    """
    users = UserRepository(session)
    user = await users.get_by_email(email)
    if user is None:
        raise NotFoundError(f"No user with email {email}")
    if user.role == UserRole.OWNER.value:
        return user, False
    if user.role == UserRole.ADMIN.value:
        raise InvalidRequestError(f"{email} is a platform administrator")

    user.role = UserRole.OWNER.value
    user.owner_id = None
    user = await users.update(user)
    logger.info(f"User {user.id} promoted to owner")
    return user, True


async def reset_user_password(session: AsyncSession, email: str) -> Tuple[User, str]:
    """Replace the password of a user with a generated one and return it in clear."""
    users = UserRepository(session)
    user = await users.get_by_email(email)
    if user is None:
        raise NotFoundError(f"No user with email {email}")

    password = generate_strong_password()
    user.hashed_password = hash_password(password)
    user = await users.update(user)
    logger.info(f"Password of user {user.id} reset from the command line")
    return user, password


def _limit(value: Optional[int]) -> str:
    return "unlimited" if value is None else str(value)


async def cmd_list_users(session: AsyncSession, args: argparse.Namespace) -> int:
    users = await list_users(session)
    if not users:
        print("No user found.")
        return 0

    print(f"{len(users)} users:\n")
    for user in users:
        agency = f", employee of #{user.owner_id}" if user.owner_id else ""
        print(f"#{user.id} {user.first_name} {user.last_name} <{user.email}> {user.role}{agency}")
        print(f"    created {user.created_at:%Y-%m-%d}")

    owners = sum(1 for user in users if user.role == UserRole.OWNER.value)
    employees = sum(1 for user in users if user.role == UserRole.EMPLOYEE.value)
    print(f"\nOwners: {owners}  Employees: {employees}")
    if owners == 0:
        print("No user has the OWNER role, use 'set-owner EMAIL' to promote one.")
    return 0


async def cmd_list_plans(session: AsyncSession, args: argparse.Namespace) -> int:
    plans = await SubscriptionPlanRepository(session).list()
    if not plans:
        print("No plan found, use 'plans upsert' to create one.")
        return 0

    for plan in plans:
        state = "active" if plan.is_active else "disabled"
        print(f"{plan.display_name} ({plan.name}) [{state}]")
        print(f"    {plan.amount / 100:.2f} {plan.currency.upper()}/{plan.interval}  price id {plan.stripe_price_id}")
        print(
            f"    limits: {_limit(plan.max_properties)} properties, {_limit(plan.max_contacts)} contacts, "
            f"{_limit(plan.max_employees)} employees"
        )
        if plan.features:
            print(f"    features: {', '.join(plan.features)}")
    return 0


async def cmd_upsert_plan(session: AsyncSession, args: argparse.Namespace) -> int:
    plan, created = await upsert_plan(
        session,
        name=args.name,
        price_id=args.price_id,
        amount=round(args.euros * 100),
        display_name=args.display_name,
        interval=args.interval,
        max_properties=args.max_properties,
        max_contacts=args.max_contacts,
        max_employees=args.max_employees,
        features=args.features,
    )
    print(f"Plan {plan.display_name} {'created' if created else 'updated'} (id {plan.id}).")
    return 0


async def cmd_disable_plan(session: AsyncSession, args: argparse.Namespace) -> int:
    plan = await set_plan_active(session, args.price_id, False)
    print(f"Plan {plan.display_name} disabled. Current subscribers keep it.")
    return 0


async def cmd_enable_plan(session: AsyncSession, args: argparse.Namespace) -> int:
    plan = await set_plan_active(session, args.price_id, True)
    print(f"Plan {plan.display_name} enabled.")
    return 0


async def cmd_set_owner(session: AsyncSession, args: argparse.Namespace) -> int:
    user, changed = await set_user_as_owner(session, args.email)
    if not changed:
        print(f"{user.email} is already an owner.")
    else:
        print(f"{user.first_name} {user.last_name} <{user.email}> is now an owner and can add employees.")
    return 0


async def cmd_reset_password(session: AsyncSession, args: argparse.Namespace) -> int:
    user, password = await reset_user_password(session, args.email)
    print(f"New password of {user.first_name} {user.last_name} <{user.email}>:\n")
    print(f"    {password}\n")
    print("It will not be shown again. Send it through a secure channel and ask for a change at first login.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="immopro-admin",
        description="ImmoPro platform administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_users_parser = subparsers.add_parser("list-users", help="List every account and its role")
    list_users_parser.set_defaults(handler=cmd_list_users)

    plans_parser = subparsers.add_parser("plans", help="Manage subscription plans")
    plans_subparsers = plans_parser.add_subparsers(dest="plans_command", required=True)

    plans_subparsers.add_parser("list", help="List the plans, cheapest first").set_defaults(handler=cmd_list_plans)

    upsert = plans_subparsers.add_parser("upsert", help="Create or update the plan sold under a Stripe price")
    upsert.add_argument("name", choices=["starter", "pro", "premium"], help="Plan key")
    upsert.add_argument("price_id", help="Stripe price id (price_...)")
    upsert.add_argument("euros", type=float, help="Price in euros, e.g. 49.00")
    upsert.add_argument("--display-name", help="Name shown to customers")
    upsert.add_argument("--interval", default="month", choices=["month", "year"])
    upsert.add_argument("--max-properties", type=int, help="Property limit (unlimited when omitted)")
    upsert.add_argument("--max-contacts", type=int, help="Contact limit (unlimited when omitted)")
    upsert.add_argument("--max-employees", type=int, help="Employee limit (unlimited when omitted)")
    upsert.add_argument("--feature", dest="features", action="append", help="Feature bullet point, repeatable")
    upsert.set_defaults(handler=cmd_upsert_plan)

    disable = plans_subparsers.add_parser("disable", help="Hide a plan from new customers")
    disable.add_argument("price_id")
    disable.set_defaults(handler=cmd_disable_plan)

    enable = plans_subparsers.add_parser("enable", help="Offer a plan again")
    enable.add_argument("price_id")
    enable.set_defaults(handler=cmd_enable_plan)

    set_owner = subparsers.add_parser("set-owner", help="Give a user the OWNER role")
    set_owner.add_argument("email")
    set_owner.set_defaults(handler=cmd_set_owner)

    reset = subparsers.add_parser("reset-employee-password", help="Generate and print a new password for a user")
    reset.add_argument("email")
    reset.set_defaults(handler=cmd_reset_password)

    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the parsed command in its own database session."""
    async with async_session_maker() as session:
        try:
            return await args.handler(session, args)
        except ImmoProError as exc:
            print(f"Error: {exc.detail}", file=sys.stderr)
            return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1
    return asyncio.run(run(args))
