"""
Отправка проверок с фиксированным интервалом без ожидания их завершения
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Callable

from .collector import CompletionCollector, SweepState
from .config import ProbeOutcome, ProbeStatus
from .prober import Prober, ProbeTask, TaskState, DEFAULT_TIMEOUT_MS

logger = logging.getLogger(__name__)

# Запас к таймауту проверки, после которого задача считается зависшей
DEADLINE_GRACE = 1.0


class ProbeDispatcher:
    """Диспетчер отправки проверок"""

    def __init__(self, prober: Prober, collector: CompletionCollector, state: SweepState,
                 interval: float = 0.02, timeout_ms: int = DEFAULT_TIMEOUT_MS,
                 max_in_flight: Optional[int] = None,
                 on_submitted: Optional[Callable[[SweepState], None]] = None):
        """
        Args:
            prober: Отправитель ICMP-проверок
            collector: Приемник результатов
            state: Общие счетчики прохода
            interval: Пауза между отправками в секундах
            timeout_ms: Таймаут одной проверки
            max_in_flight: Ограничение одновременных проверок (None - без ограничения)
            on_submitted: Обработчик прогресса после каждой отправки
        """
        self.prober = prober
        self.collector = collector
        self.state = state
        self.interval = interval
        self.timeout_ms = timeout_ms
        self.on_submitted = on_submitted
        self._semaphore = asyncio.Semaphore(max_in_flight) if max_in_flight else None
        self._running: List[asyncio.Task] = []

    async def dispatch(self, addresses: Iterable[str]) -> int:
        """
        Отправка проверок по всем адресам последовательности

        Args:
            addresses: Упорядоченная последовательность адресов

        Returns:
            Количество отправленных задач
        """
        loop = asyncio.get_running_loop()
        next_slot: Optional[float] = None

        for address in addresses:
            if next_slot is not None:
                await self._sleep_until(loop, next_slot)

            if self._semaphore is not None:
                await self._semaphore.acquire()

            task = ProbeTask(address=address, timeout_ms=self.timeout_ms)
            self.collector.register(task)
            task.advance(TaskState.SUBMITTED)
            runner = asyncio.ensure_future(self._run(task))
            self._running.append(runner)
            next_slot = loop.time() + self.interval

            self.state.mark_submitted()
            if self.on_submitted:
                self.on_submitted(self.state)

        self.collector.submission_finished()
        logger.info(f"Отправлено проверок: {self.state.submitted}")
        return self.state.submitted

    @staticmethod
    async def _sleep_until(loop: asyncio.AbstractEventLoop, deadline: float):
        # asyncio.sleep может проснуться чуть раньше срока
        remaining = deadline - loop.time()
        while remaining > 0:
            await asyncio.sleep(remaining)
            remaining = deadline - loop.time()

    async def _run(self, task: ProbeTask):
        """Выполнение одной проверки и передача итога сборщику"""
        task.advance(TaskState.PENDING)
        try:
            outcome = await asyncio.wait_for(self.prober.probe(task),
                                             timeout=task.timeout + DEADLINE_GRACE)
        except asyncio.TimeoutError:
            outcome = task.outcome(ProbeStatus.TIMEOUT, detail="deadline exceeded")
        except Exception as e:
            logger.debug(f"Ошибка отправки проверки {task.address}: {e}")
            outcome = task.outcome(ProbeStatus.FAILURE, detail=str(e) or type(e).__name__)
        finally:
            if self._semaphore is not None:
                self._semaphore.release()

        self.collector.complete(self._normalize(task, outcome))

    @staticmethod
    def _normalize(task: ProbeTask, outcome: ProbeOutcome) -> ProbeOutcome:
        # Итог всегда привязан к токену и адресу своей задачи
        if outcome.token != task.token or outcome.address != task.address:
            outcome.token = task.token
            outcome.address = task.address
        return outcome

    async def join(self):
        """Ожидание всех запущенных проверок; ошибки сборщика пробрасываются"""
        await asyncio.gather(*self._running)

