"""
Модуль отслеживания прогресса сканирования
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .collector import SweepState

PHASE_SUBMIT = "submit"
PHASE_COLLECT = "collect"


@dataclass(frozen=True)
class ProgressUpdate:
    """Снимок прогресса для отображения"""
    phase: str
    submitted: int
    pending: int
    collected: int
    total: int
    submission_percent: float
    completion_percent: float
    status: str


class ProgressTracker:
    """Трекер прогресса: доля отправленных и доля завершенных проверок"""

    def __init__(self, total: int, sink: Optional[Callable[[ProgressUpdate], None]] = None):
        self.total = total
        self.sink = sink
        self.start_time = time.time()
        self._submission_percent = 0.0
        self._completion_percent = 0.0

    def _percent(self, count: int) -> float:
        if self.total <= 0:
            return 100.0
        return min(100.0, count / self.total * 100)

    def snapshot(self, state: SweepState, phase: str) -> ProgressUpdate:
        """
        Расчет прогресса по текущим счетчикам

        Args:
            state: Счетчики прохода
            phase: Фаза (отправка или ожидание)

        Returns:
            Снимок прогресса
        """
        # Проценты не уменьшаются в пределах одного прохода
        self._submission_percent = max(self._submission_percent, self._percent(state.submitted))
        self._completion_percent = max(self._completion_percent, self._percent(state.collected))

        if phase == PHASE_SUBMIT:
            status = f"Отправлено {state.submitted}/{self.total}, ожидают ответа: {state.pending}"
        else:
            status = f"Получено ответов {state.collected}/{self.total}"

        return ProgressUpdate(
            phase=phase,
            submitted=state.submitted,
            pending=state.pending,
            collected=state.collected,
            total=self.total,
            submission_percent=self._submission_percent,
            completion_percent=self._completion_percent,
            status=status,
        )

    def on_submitted(self, state: SweepState) -> ProgressUpdate:
        """Обновление после отправки очередной задачи"""
        return self._emit(self.snapshot(state, PHASE_SUBMIT))

    def on_collected(self, state: SweepState) -> ProgressUpdate:
        """Обновление после получения очередного результата"""
        return self._emit(self.snapshot(state, PHASE_COLLECT))

    def _emit(self, update: ProgressUpdate) -> ProgressUpdate:
        if self.sink:
            self.sink(update)
        return update

    @property
    def submission_percent(self) -> float:
        return self._submission_percent

    @property
    def completion_percent(self) -> float:
        return self._completion_percent

    def get_stats(self) -> Dict:
        """Получить статистику"""
        elapsed = time.time() - self.start_time
        return {
            "total": self.total,
            "elapsed_seconds": elapsed,
            "submission_percent": self._submission_percent,
            "completion_percent": self._completion_percent,
        }
