"""
Задачи ICMP-проверки и реализации отправителей ping
"""

import asyncio
import logging
import math
import platform
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Any

from .config import ProbeOutcome, ProbeStatus
from .errors import SweepError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 2000

# Заголовок ICMP, который Linux/macOS включают в "64 bytes from"
ICMP_HEADER_SIZE = 8


class TaskState(Enum):
    """Жизненный цикл задачи проверки"""
    CREATED = 0
    SUBMITTED = 1
    PENDING = 2
    RESOLVED = 3


@dataclass
class ProbeTask:
    """Одна ICMP echo-проверка с фиксированным таймаутом"""
    address: str
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    state: TaskState = TaskState.CREATED

    @property
    def timeout(self) -> float:
        return self.timeout_ms / 1000.0

    def advance(self, new_state: TaskState):
        """
        Перевод задачи в следующее состояние

        Args:
            new_state: Новое состояние (только вперед по жизненному циклу)
        """
        if new_state.value <= self.state.value:
            raise SweepError(f"Недопустимый переход задачи {self.address}: "
                             f"{self.state.name} -> {new_state.name}")
        self.state = new_state

    def outcome(self, status: ProbeStatus, **fields) -> ProbeOutcome:
        """Построение результата, привязанного к токену задачи"""
        return ProbeOutcome(token=self.token, address=self.address, status=status, **fields)


REPLY_PATTERNS = [
    # Linux / macOS: 64 bytes from 10.0.0.1: icmp_seq=1 ttl=64 time=0.512 ms
    (re.compile(r'(?P<bytes>\d+)\s+bytes from .*?ttl=(?P<ttl>\d+).*?time(?P<cmp>[=<])\s*(?P<time>\d+\.?\d*)\s*ms',
                re.IGNORECASE), ICMP_HEADER_SIZE),
    # Windows: Reply from 10.0.0.1: bytes=32 time=1ms TTL=128
    (re.compile(r'bytes=(?P<bytes>\d+)\s+time(?P<cmp>[=<])\s*(?P<time>\d+\.?\d*)\s*ms\s+TTL=(?P<ttl>\d+)',
                re.IGNORECASE), 0),
    # Windows, русская локализация: число байт=32 время<1мс TTL=128
    (re.compile(r'байт=(?P<bytes>\d+)\s+время(?P<cmp>[=<])\s*(?P<time>\d+\.?\d*)\s*мс\s+TTL=(?P<ttl>\d+)',
                re.IGNORECASE), 0),
]

UNREACHABLE_PATTERN = re.compile(
    r'unreachable|недоступ|prohibited|transmit failed|general failure|unknown host', re.IGNORECASE)


def parse_ping_output(output: str, returncode: Optional[int]
                      ) -> Tuple[ProbeStatus, Optional[int], Optional[int], Optional[int], Optional[str]]:
    """
    Разбор вывода системной команды ping

    Args:
        output: Текст вывода ping
        returncode: Код завершения процесса

    Returns:
        Кортеж (статус, байты, ttl, время отклика в мс, описание ошибки)
    """
    for pattern, header_size in REPLY_PATTERNS:
        match = pattern.search(output)
        if match:
            size = max(0, int(match.group('bytes')) - header_size)
            ttl = int(match.group('ttl'))
            if match.group('cmp') == '<':
                rtt = 0
            else:
                rtt = int(round(float(match.group('time'))))
            return ProbeStatus.SUCCESS, size, ttl, rtt, None

    unreachable = UNREACHABLE_PATTERN.search(output)
    if unreachable:
        return ProbeStatus.FAILURE, None, None, None, unreachable.group(0).lower()

    if returncode not in (0, 1):
        # Код 2 и выше: ошибка самой команды (нет сети, неверные аргументы)
        last_line = output.strip().splitlines()[-1] if output.strip() else ""
        return ProbeStatus.FAILURE, None, None, None, last_line or f"ping exit code {returncode}"

    return ProbeStatus.TIMEOUT, None, None, None, "no reply"


class Prober(ABC):
    """Интерфейс отправителя ICMP-проверок"""

    @abstractmethod
    async def probe(self, task: ProbeTask) -> ProbeOutcome:
        """Отправить одну echo-проверку и вернуть ее итог"""
        raise NotImplementedError


class SystemPingProber(Prober):
    """Отправка проверок через системную команду ping в отдельном процессе"""

    def __init__(self, grace: float = 0.5):
        self.grace = grace
        self.system = platform.system().lower()

    def _build_ping_command(self, task: ProbeTask) -> List[str]:
        """Построение команды ping"""
        if self.system == 'windows':
            return ['ping', '-n', '1', '-w', str(task.timeout_ms), task.address]
        if self.system == 'darwin':
            # macOS принимает -W в миллисекундах
            return ['ping', '-n', '-c', '1', '-W', str(task.timeout_ms), task.address]
        return ['ping', '-n', '-c', '1', '-W', str(max(1, math.ceil(task.timeout))), task.address]

    async def probe(self, task: ProbeTask) -> ProbeOutcome:
        cmd = self._build_ping_command(task)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT
            )
        except OSError as e:
            logger.debug(f"Не удалось запустить ping для {task.address}: {e}")
            return task.outcome(ProbeStatus.FAILURE, detail=str(e))

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=task.timeout + self.grace)
        except asyncio.TimeoutError:
            return task.outcome(ProbeStatus.TIMEOUT, detail="no reply")
        finally:
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        output = stdout.decode('utf-8', errors='ignore')
        status, size, ttl, rtt, detail = parse_ping_output(output, process.returncode)
        logger.debug(f"ping {task.address}: {status.value} (код {process.returncode})")
        return task.outcome(status, bytes=size, ttl=ttl, rtt_ms=rtt, detail=detail)


class FakeProber(Prober):
    """
    Заранее заданные ответы для тестов и пробных запусков

    script: адрес -> словарь вида {"status": "success", "bytes": 32, "ttl": 64,
    "rtt_ms": 1, "delay": 0.01} или {"error": "текст"} для ошибки отправки.
    Для адресов без записи возвращается таймаут.
    """

    def __init__(self, script: Optional[Dict[str, Dict[str, Any]]] = None, default_delay: float = 0.0):
        self.script = dict(script or {})
        self.default_delay = default_delay
        self.calls: List[str] = []

    async def probe(self, task: ProbeTask) -> ProbeOutcome:
        self.calls.append(task.address)
        entry = self.script.get(task.address, {})

        delay = entry.get("delay", self.default_delay)
        if delay:
            await asyncio.sleep(delay)

        if "error" in entry:
            raise OSError(entry["error"])

        status = ProbeStatus(entry.get("status", ProbeStatus.TIMEOUT.value))
        if status is not ProbeStatus.SUCCESS:
            return task.outcome(status, detail=entry.get("detail", "no reply"))

        return task.outcome(
            status,
            bytes=entry.get("bytes", 32),
            ttl=entry.get("ttl", 64),
            rtt_ms=entry.get("rtt_ms", 1),
        )
