"""
History Retention Scheduler
보존 기간이 지난 점수 히스토리를 매일 정리

스케줄:
- 매일 HISTORY_CLEANUP_HOUR 시: score_history 보존 기간 초과 항목 삭제
"""
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from monetization_engine.core.config import settings
from monetization_engine.core.exceptions import MonetizationEngineException
from monetization_engine.services.score_history import ScoreHistoryTracker, score_history_tracker

logger = logging.getLogger(__name__)


class RetentionScheduler:
    """점수 히스토리 정리 스케줄러"""

    def __init__(self, tracker: Optional[ScoreHistoryTracker] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.tracker = tracker or score_history_tracker
        self._is_running = False
        self.last_run_at: Optional[datetime] = None
        self.last_removed: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self):
        """스케줄러 시작"""
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        self.scheduler = AsyncIOScheduler()

        self.scheduler.add_job(
            self.cleanup_history,
            CronTrigger(hour=settings.HISTORY_CLEANUP_HOUR, minute=0),
            id="score_history_cleanup",
            name="Score History Retention Cleanup",
            replace_existing=True
        )

        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Retention scheduler started: cleanup at {settings.HISTORY_CLEANUP_HOUR:02d}:00, "
            f"retention {settings.HISTORY_RETENTION_DAYS} days"
        )

    def stop(self):
        """스케줄러 종료"""
        if self.scheduler:
            self.scheduler.shutdown()
            self._is_running = False
            logger.info("Retention scheduler stopped")

    async def cleanup_history(self) -> int:
        """보존 기간 초과 히스토리 삭제 (실패해도 다음 실행은 유지)"""
        logger.info(f"[Scheduler] score history cleanup started: {datetime.utcnow()}")
        try:
            removed = await self.tracker.cleanup(settings.HISTORY_RETENTION_DAYS)
        except MonetizationEngineException as e:
            logger.error(f"[Scheduler] score history cleanup failed: {e.message}")
            return 0

        self.last_run_at = datetime.utcnow()
        self.last_removed = removed
        return removed


# 싱글톤 인스턴스
retention_scheduler = RetentionScheduler()
