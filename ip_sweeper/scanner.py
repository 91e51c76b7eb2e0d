"""
Модуль асинхронного сканирования диапазона
"""

import asyncio
import logging
import time
from typing import List, Optional, Union, Callable

from .address_range import AddressRange, AddressLike, int_to_ip
from .collector import CompletionCollector, SweepState
from .config import SweepConfig, SweepSummary, ProbeOutcome, ProbeStatus
from .dispatcher import ProbeDispatcher
from .progress import ProgressTracker, ProgressUpdate
from .projector import ResultProjector, ResultRecord
from .prober import Prober, SystemPingProber

logger = logging.getLogger(__name__)

SweepResult = List[Union[ResultRecord, ProbeOutcome]]


class SweepEngine:
    """Асинхронный сканер диапазона IPv4-адресов"""

    def __init__(self, config: Optional[SweepConfig] = None, prober: Optional[Prober] = None,
                 progress: Optional[Callable[[ProgressUpdate], None]] = None):
        self.config = config or SweepConfig()
        self.prober = prober or SystemPingProber()
        self.progress = progress
        self.last_summary: Optional[SweepSummary] = None
        self.last_outcomes: List[ProbeOutcome] = []

    async def run(self, start: AddressLike, end: AddressLike,
                  interval_ms: Optional[int] = None, raw: Optional[bool] = None) -> SweepResult:
        """
        Сканирование диапазона

        Args:
            start: Начальный адрес
            end: Конечный адрес (включительно)
            interval_ms: Пауза между отправками, по умолчанию из конфигурации
            raw: Вернуть исходные успешные результаты вместо записей

        Returns:
            Список записей об ответивших адресах по возрастанию адреса
        """
        interval_ms = self.config.interval_ms if interval_ms is None else interval_ms
        raw = self.config.raw_output if raw is None else raw
        if interval_ms < 0:
            raise ValueError("interval_ms не может быть отрицательным")

        address_range = AddressRange(start, end)
        if address_range.is_reversed:
            logger.warning(f"Конечный адрес {int_to_ip(address_range.end)} меньше начального "
                           f"{int_to_ip(address_range.start)}, диапазон пуст")

        summary = SweepSummary(total_hosts=len(address_range), start_time=time.time())
        state = SweepState(total=len(address_range))
        tracker = ProgressTracker(total=state.total, sink=self.progress)
        collector = CompletionCollector(state, on_complete=tracker.on_collected)
        dispatcher = ProbeDispatcher(
            self.prober,
            collector,
            state,
            interval=interval_ms / 1000.0,
            timeout_ms=self.config.timeout_ms,
            max_in_flight=self.config.max_in_flight,
            on_submitted=tracker.on_submitted,
        )

        logger.info(f"Начинаем сканирование {state.total} адресов "
                    f"({address_range!r}, интервал {interval_ms} мс)")

        await dispatcher.dispatch(address_range)
        await asyncio.gather(dispatcher.join(), collector.wait())
        if state.total == 0:
            # Пустой диапазон не порождает событий, отчитываемся о завершении явно
            tracker.on_collected(state)

        outcomes = collector.outcomes()
        results = ResultProjector(raw=raw).project(outcomes)

        summary.end_time = time.time()
        summary.scan_duration = summary.end_time - summary.start_time
        summary.responded = sum(1 for o in outcomes if o.status is ProbeStatus.SUCCESS)
        summary.failed = sum(1 for o in outcomes if o.status is ProbeStatus.FAILURE)
        summary.timed_out = sum(1 for o in outcomes if o.status is ProbeStatus.TIMEOUT)
        summary.responders = [r.address for r in results]
        self.last_summary = summary
        self.last_outcomes = outcomes

        logger.info(f"Сканирование завершено за {summary.scan_duration:.1f} секунд")
        logger.info(f"Результаты: {summary.responded} ответили, {summary.failed} ошибок, "
                    f"{summary.timed_out} без ответа")

        return results

    def sweep(self, start: AddressLike, end: AddressLike,
              interval_ms: Optional[int] = None, raw: Optional[bool] = None) -> SweepResult:
        """Синхронная обертка над run()"""
        return asyncio.run(self.run(start, end, interval_ms=interval_ms, raw=raw))
