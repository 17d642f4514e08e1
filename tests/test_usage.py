from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from studio.core.errors import ValidationError
from studio.core.usage import UsageAggregator, current_billing_period


def _compile(stmt):  # noqa: ANN001
    return stmt.compile(dialect=postgresql.dialect())


def test_current_billing_period_mid_month() -> None:
    start, end = current_billing_period(datetime(2026, 10, 18, 15, 30, tzinfo=timezone.utc))

    assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)
    assert end == datetime(2026, 11, 1, tzinfo=timezone.utc)


def test_current_billing_period_rolls_over_year_in_december() -> None:
    start, end = current_billing_period(datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc))

    assert start == datetime(2026, 12, 1, tzinfo=timezone.utc)
    assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)


def test_current_billing_period_normalizes_to_utc() -> None:
    naive_start, _ = current_billing_period(datetime(2026, 3, 5))
    assert naive_start == datetime(2026, 3, 1, tzinfo=timezone.utc)

    # 00:30 on April 1st at UTC+2 is still March in UTC.
    plus_two = timezone(timedelta(hours=2))
    start, end = current_billing_period(datetime(2026, 4, 1, 0, 30, tzinfo=plus_two))
    assert start == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert end == datetime(2026, 4, 1, tzinfo=timezone.utc)


def test_student_usage_excludes_archived_and_scopes_by_organization() -> None:
    organization_id = uuid4()
    compiled = _compile(UsageAggregator(AsyncMock()).usage_statement(organization_id, "maxStudents"))

    sql = str(compiled)
    assert "count(students.id)" in sql
    assert "students.organization_id" in sql
    assert "students.status !=" in sql
    assert organization_id in compiled.params.values()
    assert "ARCHIVED" in compiled.params.values()


def test_trainer_usage_counts_trainer_class_roles() -> None:
    organization_id = uuid4()
    compiled = _compile(UsageAggregator(AsyncMock()).usage_statement(organization_id, "maxTrainers"))

    sql = str(compiled)
    assert "count(users.id)" in sql
    assert "users.role IN" in sql
    assert organization_id in compiled.params.values()


def test_session_usage_counts_current_month_by_start_time() -> None:
    organization_id = uuid4()
    now = datetime(2026, 12, 15, tzinfo=timezone.utc)
    compiled = _compile(
        UsageAggregator(AsyncMock()).usage_statement(organization_id, "maxSessionsPerMonth", now)
    )

    sql = str(compiled)
    assert "sessions.start_time >=" in sql
    assert "sessions.start_time <" in sql
    values = list(compiled.params.values())
    assert datetime(2026, 12, 1, tzinfo=timezone.utc) in values
    assert datetime(2027, 1, 1, tzinfo=timezone.utc) in values


def test_payment_usage_counts_current_month_by_creation_time() -> None:
    organization_id = uuid4()
    now = datetime(2026, 2, 10, tzinfo=timezone.utc)
    compiled = _compile(
        UsageAggregator(AsyncMock()).usage_statement(organization_id, "maxPaymentsPerMonth", now)
    )

    sql = str(compiled)
    assert "count(payments.id)" in sql
    assert "payments.created_at >=" in sql
    values = list(compiled.params.values())
    assert datetime(2026, 2, 1, tzinfo=timezone.utc) in values
    assert datetime(2026, 3, 1, tzinfo=timezone.utc) in values


def test_unknown_limit_key_is_rejected() -> None:
    with pytest.raises(ValidationError):
        UsageAggregator(AsyncMock()).usage_statement(uuid4(), "maxLocations")


@pytest.mark.asyncio
async def test_current_usage_returns_count() -> None:
    session = AsyncMock()
    session.scalar.return_value = 7

    assert await UsageAggregator(session).current_usage(uuid4(), "maxStudents") == 7
    session.scalar.assert_awaited_once()


@pytest.mark.asyncio
async def test_current_usage_treats_missing_count_as_zero() -> None:
    session = AsyncMock()
    session.scalar.return_value = None

    assert await UsageAggregator(session).current_usage(uuid4(), "maxTrainers") == 0
