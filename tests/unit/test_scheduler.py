# tests/unit/test_scheduler.py
import pytest

from stockflow import scheduler as scheduler_module
from stockflow.core.config import get_settings
from stockflow.scheduler import RECONCILE_JOB_ID, create_scheduler, reconcile_inventory_task


def test_create_scheduler_registers_reconcile_job(mocker):
    settings = get_settings().model_copy(update={"RECONCILE_ENABLED": True})
    mocker.patch.object(scheduler_module, "get_settings", return_value=settings)
    mocker.patch.object(scheduler_module, "scheduler", None)

    sched = create_scheduler()
    job = sched.get_job(RECONCILE_JOB_ID)

    assert job is not None
    assert job.max_instances == 1
    assert str(job.trigger.timezone) == "Asia/Kolkata"


def test_create_scheduler_without_job_when_disabled(mocker):
    settings = get_settings().model_copy(update={"RECONCILE_ENABLED": False})
    mocker.patch.object(scheduler_module, "get_settings", return_value=settings)
    mocker.patch.object(scheduler_module, "scheduler", None)

    assert create_scheduler().get_jobs() == []


@pytest.mark.asyncio
async def test_reconcile_task_logs_instead_of_raising(mocker, tmp_path, caplog):
    settings = get_settings().model_copy(update={"INVENTORY_CSV_PATH": str(tmp_path / "missing.csv")})
    mocker.patch.object(scheduler_module, "get_settings", return_value=settings)

    await reconcile_inventory_task()

    assert "Error in scheduled reconciliation task" in caplog.text
