#!/usr/bin/env python3
"""
Seed Default Data
=================

Creates the default admin, the default complaint categories and one
staff account per category from ``seed_data.yaml``.

Safe to run repeatedly: existing users and categories are reused and
the staff/category binding is repaired both ways.
"""

import asyncio
from pathlib import Path
from typing import Optional

import yaml

from campusdesk.config import UserRole
from campusdesk.complaints.domain import Category
from campusdesk.complaints.infrastructure import SQLAlchemyCategoryRepository
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure import BcryptPasswordHasher, SQLAlchemyUserRepository
from campusdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)

SEED_FILE = Path(__file__).parent / "seed_data.yaml"


def load_seed_data(path: Path = SEED_FILE) -> dict:
    with open(path) as f:
        return yaml.safe_load(f)


async def ensure_user(
    users: SQLAlchemyUserRepository,
    hasher: BcryptPasswordHasher,
    name: str,
    email: str,
    password: str,
    role: UserRole,
) -> User:
    user = await users.get_by_email(email)
    if user is not None:
        return user
    return await users.add(User(
        name=name,
        email=email,
        role=role,
        password_hash=hasher.hash(password),
    ))


async def ensure_category(categories: SQLAlchemyCategoryRepository, name: str, description: str) -> Category:
    category = await categories.get_by_name(name)
    if category is not None:
        return category
    return await categories.add(Category(name=name, description=description))


async def seed(data: dict, database_url: Optional[str] = None) -> None:
    init_database(database_url)
    await create_tables()

    hasher = BcryptPasswordHasher()

    async with get_session_context() as session:
        users = SQLAlchemyUserRepository(session)
        categories = SQLAlchemyCategoryRepository(session)

        admin = data["admin"]
        await ensure_user(users, hasher, admin["name"], admin["email"], admin["password"], UserRole.ADMIN)
        print(f"Admin ready: {admin['email']}")

        for entry in data["categories"]:
            category = await ensure_category(categories, entry["name"], entry.get("description", ""))
            staff = await ensure_user(
                users,
                hasher,
                f"{entry['name']} Staff",
                entry["staff_email"],
                data["staff_password"],
                UserRole.CATEGORY_STAFF,
            )

            await categories.release_staff(staff.id)
            await categories.bind_staff(category.id, staff.id)
            staff.assigned_category_id = category.id
            staff.touch()
            await users.update(staff)

            print(f"Category ready: {entry['name']} | Staff: {entry['staff_email']}")

    await close_database()
    print("Seed completed successfully")


async def main():
    await seed(load_seed_data())


if __name__ == "__main__":
    asyncio.run(main())
