import pytest

from conftest import FakeOracle
from grin_gateway.jobs import scheduler as scheduler_module
from grin_gateway.jobs.scheduler import (
    RECONCILIATION_JOB_ID,
    ReconciliationScheduler,
    run_reconciliation_job,
)
from grin_gateway.models.enums import OrderStatus


def test_job_is_registered_with_interval():
    scheduler = ReconciliationScheduler(interval_minutes=60)

    scheduler.setup_jobs()

    job = scheduler.scheduler.get_job(RECONCILIATION_JOB_ID)
    assert job is not None
    assert job.trigger.interval.total_seconds() == 3600
    assert job.func is run_reconciliation_job


def test_setup_is_idempotent():
    scheduler = ReconciliationScheduler()

    scheduler.setup_jobs()
    scheduler.setup_jobs()

    assert len(scheduler.scheduler.get_jobs()) == 1


@pytest.mark.asyncio
async def test_job_settles_verified_orders(session_factory, make_order, db, monkeypatch):
    order = make_order(reference="GRIN-j-1", grin_amount="1")
    monkeypatch.setattr(scheduler_module, "build_oracle", lambda settings: FakeOracle(default=True))

    await run_reconciliation_job(session_factory=session_factory)

    db.expire_all()
    assert order.status == OrderStatus.COMPLETED


@pytest.mark.asyncio
async def test_job_without_verification_service_leaves_orders_pending(session_factory, make_order, db, monkeypatch):
    monkeypatch.delenv("GRIN_VERIFICATION_URL", raising=False)
    order = make_order(reference="GRIN-j-1", grin_amount="1")

    await run_reconciliation_job(session_factory=session_factory)

    db.expire_all()
    assert order.status == OrderStatus.PENDING


@pytest.mark.asyncio
async def test_job_skips_on_bad_configuration(session_factory, make_order, db, monkeypatch, log_messages):
    monkeypatch.setenv("GRIN_EXCHANGE_RATE_SOURCE", "binance")
    order = make_order(reference="GRIN-j-1", grin_amount="1")

    await run_reconciliation_job(session_factory=session_factory)

    db.expire_all()
    assert order.status == OrderStatus.PENDING
    assert any("Skipping GRIN reconciliation" in m for m in log_messages)
