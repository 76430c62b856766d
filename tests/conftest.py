from __future__ import annotations

import pytest

from src.time_bank.time_bank.core.caller import Caller
from src.time_bank.time_bank.core.enums import Role

from tests.fakes import FakeClockifyClient, FakeEmployeeRepo, build_fake_container, employee

TENANT = 1


@pytest.fixture
def employees():
    return FakeEmployeeRepo(
        [
            employee(1, "Alice Santos", email="alice@example.com", user_id=101),
            employee(2, "Bruno Lima", email="Bruno@Example.com ", user_id=102),
        ]
    )


@pytest.fixture
def clockify_client():
    return FakeClockifyClient()


@pytest.fixture
def container(employees, clockify_client):
    return build_fake_container(employees, clockify_client=clockify_client)


@pytest.fixture
def hr():
    return Caller(tenant_id=TENANT, user_id=900, role=Role.HR)


@pytest.fixture
def admin():
    return Caller(tenant_id=TENANT, user_id=901, role=Role.ADMIN)


@pytest.fixture
def alice():
    return Caller(tenant_id=TENANT, user_id=101, role=Role.EMPLOYEE)


@pytest.fixture
def bruno():
    return Caller(tenant_id=TENANT, user_id=102, role=Role.EMPLOYEE)
