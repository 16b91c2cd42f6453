"""Tests for the in-memory user repository."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date

import pytest

from users_api.models import User, UserDetails
from users_api.repository import UserRepository


def _details(first_name: str = "John", birth_date: date = date(1990, 1, 1)) -> UserDetails:
    return UserDetails(
        first_name=first_name,
        last_name="Doe",
        email=f"{first_name.lower()}.doe@example.com",
        birth_date=birth_date,
        address="123 Street",
        phone_number="1234567890",
    )


@pytest.fixture()
def repository() -> UserRepository:
    return UserRepository()


def test_insert_assigns_identifier(repository: UserRepository) -> None:
    user = repository.insert(_details())

    assert user.id
    assert user.first_name == "John"
    assert repository.exists_by_id(user.id)
    assert repository.count() == 1


def test_insert_generates_distinct_identifiers(repository: UserRepository) -> None:
    ids = {repository.insert(_details()).id for _ in range(50)}

    assert len(ids) == 50


def test_find_by_id_returns_stored_user(repository: UserRepository) -> None:
    user = repository.insert(_details())

    assert repository.find_by_id(user.id) == user


def test_find_by_id_unknown_returns_none(repository: UserRepository) -> None:
    assert repository.find_by_id("nonexistent-id") is None
    assert repository.exists_by_id("nonexistent-id") is False


def test_delete_by_id(repository: UserRepository) -> None:
    user = repository.insert(_details())

    assert repository.delete_by_id(user.id) is True
    assert repository.exists_by_id(user.id) is False
    assert repository.delete_by_id(user.id) is False


def test_delete_unknown_leaves_other_users(repository: UserRepository) -> None:
    user = repository.insert(_details())

    assert repository.delete_by_id("nonexistent-id") is False
    assert repository.find_by_id(user.id) == user


def test_update_replaces_only_target(repository: UserRepository) -> None:
    first = repository.insert(_details("John"))
    second = repository.insert(_details("Jane"))

    assert repository.update(replace(first, first_name="Joe")) is True

    assert repository.find_by_id(first.id).first_name == "Joe"
    assert repository.find_by_id(second.id) == second
    assert repository.count() == 2


def test_update_unknown_identifier_stores_nothing(repository: UserRepository) -> None:
    ghost = User.from_details("nonexistent-id", _details())

    assert repository.update(ghost) is False
    assert repository.count() == 0


def test_scan_by_date_range_is_inclusive(repository: UserRepository) -> None:
    john = repository.insert(_details("John", date(1990, 1, 1)))
    repository.insert(_details("Jane", date(1995, 1, 1)))

    users = repository.scan_by_date_range(date(1989, 12, 31), date(1991, 1, 2))
    assert users == [john]

    exact = repository.scan_by_date_range(date(1990, 1, 1), date(1990, 1, 1))
    assert exact == [john]

    both = repository.scan_by_date_range(date(1990, 1, 1), date(1995, 1, 1))
    assert {user.first_name for user in both} == {"John", "Jane"}


def test_scan_by_date_range_without_matches(repository: UserRepository) -> None:
    assert repository.scan_by_date_range(date(2000, 1, 1), date(2001, 1, 1)) == []

    repository.insert(_details())
    assert repository.scan_by_date_range(date(2000, 1, 1), date(2001, 1, 1)) == []


def test_scan_does_not_validate_range_order(repository: UserRepository) -> None:
    repository.insert(_details())

    assert repository.scan_by_date_range(date(1991, 1, 1), date(1989, 1, 1)) == []


def test_concurrent_inserts_are_all_stored(repository: UserRepository) -> None:
    def worker() -> None:
        for _ in range(100):
            repository.insert(_details())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert repository.count() == 800


def test_scans_see_whole_records_while_writers_run(repository: UserRepository) -> None:
    start, end = date(1990, 1, 1), date(1995, 12, 31)
    seeded = [repository.insert(_details("John", date(1990 + i % 6, 1, 1))) for i in range(30)]
    names = {("John", "Doe"), ("Joe", "Newel"), ("Jane", "Doe")}
    stop = threading.Event()
    failures: list = []

    def inserter() -> None:
        year = 1985
        while not stop.is_set():
            repository.insert(_details("Jane", date(year, 6, 1)))
            year = 1985 if year == 2000 else year + 1

    def renamer() -> None:
        flip = False
        while not stop.is_set():
            for user in seeded:
                current = repository.find_by_id(user.id)
                if current is None:
                    continue
                if flip:
                    repository.update(replace(current, first_name="Joe", last_name="Newel"))
                else:
                    repository.update(replace(current, first_name="John", last_name="Doe"))
            flip = not flip

    def deleter() -> None:
        for user in seeded[::3]:
            repository.delete_by_id(user.id)

    def scanner() -> None:
        for _ in range(300):
            users = repository.scan_by_date_range(start, end)
            ids = [user.id for user in users]
            if len(ids) != len(set(ids)):
                failures.append("duplicate identifiers in scan")
            for user in users:
                if not isinstance(user, User) or not user.id:
                    failures.append(f"incomplete record {user!r}")
                elif not start <= user.birth_date <= end:
                    failures.append(f"out of range record {user!r}")
                elif (user.first_name, user.last_name) not in names:
                    failures.append(f"half-written record {user!r}")

    writers = [threading.Thread(target=target) for target in (inserter, renamer, deleter)]
    scanners = [threading.Thread(target=scanner) for _ in range(2)]
    for thread in writers + scanners:
        thread.start()
    for thread in scanners:
        thread.join()
    stop.set()
    for thread in writers:
        thread.join()

    assert failures == []
    for user in seeded[::3]:
        assert repository.find_by_id(user.id) is None
