"""
Преобразование результатов проверок в записи отчета
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union, Any, Dict

from .address_range import ip_to_int
from .config import ProbeOutcome

CSV_COLUMNS = ["IPAddress", "Bytes", "Ttl", "ResponseTime"]
HOSTNAME_COLUMN = "HostName"


@dataclass(frozen=True)
class ResultRecord:
    """Компактная запись об ответившем адресе"""
    address: str
    bytes: int
    ttl: int
    response_time: int
    hostname: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: ProbeOutcome) -> "ResultRecord":
        return cls(
            address=outcome.address,
            bytes=outcome.bytes or 0,
            ttl=outcome.ttl or 0,
            response_time=outcome.rtt_ms or 0,
        )

    def with_hostname(self, hostname: Optional[str]) -> "ResultRecord":
        return ResultRecord(self.address, self.bytes, self.ttl, self.response_time, hostname)

    def to_row(self, include_hostname: bool = False) -> List[Any]:
        row = [self.address, self.bytes, self.ttl, self.response_time]
        if include_hostname:
            row.append(self.hostname or "")
        return row

    def to_dict(self) -> Dict[str, Any]:
        data = dict(zip(CSV_COLUMNS, self.to_row()))
        if self.hostname is not None:
            data[HOSTNAME_COLUMN] = self.hostname
        return data


class ResultProjector:
    """Отбор успешных результатов и построение записей"""

    def __init__(self, raw: bool = False):
        self.raw = raw

    def project(self, outcomes: Iterable[ProbeOutcome]) -> List[Union[ResultRecord, ProbeOutcome]]:
        """
        Отбор ответивших адресов

        Args:
            outcomes: Все результаты прохода

        Returns:
            Записи (или исходные результаты в сыром режиме) по возрастанию адреса
        """
        # Ошибки и таймауты ожидаемы для редко занятого диапазона, они просто отбрасываются
        successes = sorted((o for o in outcomes if o.is_success), key=lambda o: ip_to_int(o.address))
        if self.raw:
            return successes
        return [ResultRecord.from_outcome(o) for o in successes]
