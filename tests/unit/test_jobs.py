import pytest
from loguru import logger

import jobs


class TestRunReminderSweep:
    @pytest.mark.asyncio
    async def test_runs_against_empty_memory_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIRESTORE_ADAPTER", "memory")

        assert await jobs.run_reminder_sweep() == 0

    @pytest.mark.asyncio
    async def test_warns_when_sweeping_memory_store(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FIRESTORE_ADAPTER", "memory")
        warnings: list[str] = []
        sink_id = logger.add(lambda m: warnings.append(m.record["message"]), level="WARNING")

        try:
            await jobs.run_reminder_sweep()
        finally:
            logger.remove(sink_id)

        assert any("in-memory store" in w for w in warnings)
