"""
Shared fixtures: an in-memory MongoDB (mongomock-motor) seeded with a small
catalog and a few users.

Catalog
-------
B1 (stage 1): C1 -> [E1 (difficulty 3)]
B2 (stage 2): C2 -> [E21, E22, E23 (difficulty 1)], C3 -> [E31 (difficulty 2)]

Users
-----
U1 fresh (xp 0), U2 with xp 95, ADMIN with role admin
"""
import asyncio

import pytest
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ServerSelectionTimeoutError

from app.auth.auth_utils import create_token

BATCHES = [
    {"course_batch_id": "B1", "course_list": ["C1"], "stage": 1},
    {"course_batch_id": "B2", "course_list": ["C2", "C3"], "stage": 2},
]

COURSES = [
    {"course_id": "C1", "course_batch_id": "B1", "title": "Counting", "exercise_batch_list": ["E1"]},
    {"course_id": "C2", "course_batch_id": "B2", "title": "Addition", "exercise_batch_list": ["E21", "E22", "E23"]},
    {"course_id": "C3", "course_batch_id": "B2", "title": "Subtraction", "exercise_batch_list": ["E31"]},
]

EXERCISES = [
    {"exercise_id": "E1", "course_id": "C1", "course_batch_id": "B1", "difficulty_level": 3,
     "question": "1 + 1", "options": ["1", "2"], "answer": "2"},
    {"exercise_id": "E21", "course_id": "C2", "course_batch_id": "B2", "difficulty_level": 1},
    {"exercise_id": "E22", "course_id": "C2", "course_batch_id": "B2", "difficulty_level": 1},
    {"exercise_id": "E23", "course_id": "C2", "course_batch_id": "B2", "difficulty_level": 1},
    {"exercise_id": "E31", "course_id": "C3", "course_batch_id": "B2", "difficulty_level": 2},
]

USERS = [
    {"user_id": "U1", "username": "alice", "email": "alice@example.com", "password": "hashed-1",
     "nickname": "Alice", "profile_picture": "alice.png", "xp": 0, "level": 1, "progress": []},
    {"user_id": "U2", "username": "bob", "email": "bob@example.com", "password": "hashed-2",
     "xp": 95, "level": 1, "version": 4, "progress": []},
    {"user_id": "ADMIN", "username": "root", "email": "root@example.com", "password": "hashed-3",
     "role": "admin", "xp": 40, "level": 1, "progress": []},
]


async def seed(db):
    await db.course_batches.insert_many([dict(d) for d in BATCHES])
    await db.courses.insert_many([dict(d) for d in COURSES])
    await db.exercises.insert_many([dict(d) for d in EXERCISES])
    await db.users.insert_many([dict(d) for d in USERS])


@pytest.fixture
def mongo_db():
    """Fresh seeded in-memory database per test"""
    db = AsyncMongoMockClient()["progress_test"]
    asyncio.run(seed(db))
    return db


class UnreachableCollection:
    """Collection whose reads fail like a lost MongoDB connection"""

    async def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    async def update_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")


class UnreachableDatabase:
    def __getattr__(self, name):
        return UnreachableCollection()


@pytest.fixture
def unreachable_db():
    return UnreachableDatabase()


@pytest.fixture
def auth_header():
    """Builds an Authorization header for a user id"""
    def _header(user_id: str, role: str = "user") -> dict:
        return {"Authorization": f"Bearer {create_token(user_id, username=user_id.lower(), role=role)}"}
    return _header
