"""
Сбор результатов проверок, приходящих в произвольном порядке
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Callable

from .config import ProbeOutcome
from .errors import CollectorDesyncError
from .prober import ProbeTask, TaskState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.01


@dataclass
class SweepState:
    """Счетчики одного прохода по диапазону"""
    total: int = 0
    submitted: int = 0
    collected: int = 0

    @property
    def pending(self) -> int:
        """Отправленные, но еще не завершенные проверки"""
        return self.submitted - self.collected

    @property
    def is_complete(self) -> bool:
        return self.collected == self.submitted == self.total

    def mark_submitted(self):
        """Учет отправленной задачи"""
        if self.submitted >= self.total:
            raise CollectorDesyncError(
                f"Отправлено больше задач, чем адресов: {self.submitted + 1} > {self.total}")
        self.submitted += 1

    def mark_collected(self):
        """Учет полученного результата"""
        if self.collected >= self.submitted:
            raise CollectorDesyncError(
                f"Получено больше результатов, чем отправлено: {self.collected + 1} > {self.submitted}")
        self.collected += 1


class CompletionCollector:
    """Приемник результатов, адресуемый по токену задачи"""

    def __init__(self, state: SweepState,
                 on_complete: Optional[Callable[[SweepState], None]] = None):
        self.state = state
        self.on_complete = on_complete
        self._tasks: Dict[str, ProbeTask] = {}
        self._outcomes: Dict[str, ProbeOutcome] = {}
        self._done = asyncio.Event()
        if self.state.total == 0:
            self._done.set()

    def register(self, task: ProbeTask):
        """
        Регистрация задачи до ее отправки

        Args:
            task: Задача проверки
        """
        if task.token in self._tasks:
            raise CollectorDesyncError(f"Повторная регистрация токена {task.token}")
        self._tasks[task.token] = task

    def complete(self, outcome: ProbeOutcome):
        """
        Прием результата проверки

        Args:
            outcome: Итог проверки с токеном задачи
        """
        task = self._tasks.get(outcome.token)
        if task is None:
            raise CollectorDesyncError(f"Результат с неизвестным токеном {outcome.token}")
        if outcome.token in self._outcomes:
            raise CollectorDesyncError(f"Повторный результат для {task.address}")

        # Запись результата должна предшествовать увеличению счетчика
        self._outcomes[outcome.token] = outcome
        task.advance(TaskState.RESOLVED)
        self.state.mark_collected()

        logger.debug(f"{task.address}: {outcome.status.value} "
                     f"({self.state.collected}/{self.state.total})")

        if self.on_complete:
            self.on_complete(self.state)
        self._check_done()

    def _check_done(self):
        if self.state.is_complete:
            self._done.set()

    def submission_finished(self):
        """Вызывается диспетчером после отправки последней задачи"""
        self._check_done()

    async def wait(self, poll: bool = False, poll_interval: float = DEFAULT_POLL_INTERVAL):
        """
        Ожидание завершения всех отправленных проверок

        Args:
            poll: Опрашивать счетчики вместо ожидания события
            poll_interval: Шаг опроса в секундах
        """
        if not poll:
            await self._done.wait()
        else:
            while not self.state.is_complete:
                await asyncio.sleep(poll_interval)

        if len(self._outcomes) != self.state.total:
            raise CollectorDesyncError(
                f"Число результатов {len(self._outcomes)} не совпадает с числом адресов {self.state.total}")

    def outcomes(self) -> List[ProbeOutcome]:
        """Все полученные результаты (читать только после wait)"""
        return list(self._outcomes.values())

    def __len__(self) -> int:
        return len(self._outcomes)
