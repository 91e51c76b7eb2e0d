"""
Модуль для генерации отчетов
"""

import csv
import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from . import __version__
from .address_range import ip_to_int
from .config import SweepConfig, SweepSummary, ReportFormat, ProbeOutcome
from .projector import ResultRecord, CSV_COLUMNS, HOSTNAME_COLUMN

logger = logging.getLogger(__name__)

Results = Sequence[Union[ResultRecord, ProbeOutcome]]


class ReportGenerator:
    """Генератор отчетов"""

    def __init__(self, config: SweepConfig):
        self.config = config

    def generate(self, results: Results, summary: Optional[SweepSummary] = None) -> str:
        """
        Генерация отчета

        Args:
            results: Записи или сырые результаты
            summary: Сводка по проходу (для текстового и JSON отчета)

        Returns:
            Строка с отчетом
        """
        ordered = self.sort_results(results)
        format_methods = {
            ReportFormat.TEXT: self._generate_text,
            ReportFormat.JSON: self._generate_json,
            ReportFormat.CSV: self._generate_csv,
        }

        method = format_methods.get(self.config.report_format, self._generate_csv)
        return method(ordered, summary)

    @staticmethod
    def sort_results(results: Results) -> List[Union[ResultRecord, ProbeOutcome]]:
        """Сортировка по числовому значению адреса"""
        return sorted(results, key=lambda r: ip_to_int(r.address))

    @staticmethod
    def _has_hostnames(results: Results) -> bool:
        return any(isinstance(r, ResultRecord) and r.hostname is not None for r in results)

    def _generate_csv(self, results: Results, summary: Optional[SweepSummary] = None) -> str:
        """Генерация CSV отчета"""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")

        if self.config.raw_output or (results and isinstance(results[0], ProbeOutcome)):
            writer.writerow(["IPAddress", "Status", "Bytes", "Ttl", "ResponseTime", "Token"])
            for outcome in results:
                writer.writerow([outcome.address, outcome.status.value, outcome.bytes,
                                 outcome.ttl, outcome.rtt_ms, outcome.token])
            return output.getvalue()

        include_hostname = self.config.resolve_hostnames or self._has_hostnames(results)
        header = CSV_COLUMNS + ([HOSTNAME_COLUMN] if include_hostname else [])
        writer.writerow(header)
        for record in results:
            writer.writerow(record.to_row(include_hostname))

        return output.getvalue()

    def _generate_json(self, results: Results, summary: Optional[SweepSummary] = None) -> str:
        """Генерация JSON отчета"""
        full_report = {
            "metadata": {
                "generated_at": datetime.now().isoformat(),
                "config": self.config.to_dict(),
                "scanner_version": __version__
            },
            "summary": self._summary_dict(summary),
            "results": [r.to_dict() for r in results],
        }

        return json.dumps(full_report, indent=2, ensure_ascii=False)

    def _generate_text(self, results: Results, summary: Optional[SweepSummary] = None) -> str:
        """Генерация текстового отчета"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        report_lines = [
            "=" * 70,
            "ОТЧЕТ О СКАНИРОВАНИИ ДИАПАЗОНА",
            f"Дата и время: {timestamp}",
            "=" * 70,
            "",
        ]

        if summary is not None:
            report_lines.extend([
                "ОБЩАЯ СТАТИСТИКА:",
                f"  Всего адресов: {summary.total_hosts}",
                f"  Ответили: {summary.responded} ({summary.alive_percent:.1f}%)",
                f"  Ошибки: {summary.failed}",
                f"  Без ответа: {summary.timed_out}",
                f"  Время сканирования: {summary.scan_duration:.1f} сек",
                "",
            ])

        if results:
            report_lines.extend([
                "ОТВЕТИВШИЕ АДРЕСА:",
                "-" * 70,
                f"  {'IPAddress':<18}{'Bytes':>6}{'Ttl':>6}{'Time':>8}  HostName",
            ])
            for item in results:
                if isinstance(item, ProbeOutcome):
                    line = f"  {item.address:<18}{item.bytes or 0:>6}{item.ttl or 0:>6}{item.rtt_ms or 0:>6} мс"
                else:
                    line = (f"  {item.address:<18}{item.bytes:>6}{item.ttl:>6}{item.response_time:>6} мс"
                            f"  {item.hostname or ''}")
                report_lines.append(line.rstrip())
        else:
            report_lines.append("Нет ответивших адресов")

        report_lines.extend([
            "",
            "=" * 70,
        ])

        return "\n".join(report_lines)

    @staticmethod
    def _summary_dict(summary: Optional[SweepSummary]) -> dict:
        if summary is None:
            return {}
        return {
            "total": summary.total_hosts,
            "responded": summary.responded,
            "failed": summary.failed,
            "timed_out": summary.timed_out,
            "silent": summary.silent,
            "alive_percent": round(summary.alive_percent, 2),
            "scan_duration_seconds": round(summary.scan_duration, 2),
        }

    def save_report(self, report: str, filepath: Optional[str] = None) -> bool:
        """
        Сохранение отчета в файл

        Args:
            report: Текст отчета
            filepath: Путь к файлу (опционально)

        Returns:
            True если успешно
        """
        if filepath is None:
            filepath = self.config.output_file

        try:
            path = Path(filepath)
            path.parent.mkdir(parents=True, exist_ok=True)

            with open(path, 'w', encoding='utf-8', newline='') as f:
                f.write(report)

            logger.info(f"Отчет сохранен в файл: {filepath}")
            return True

        except OSError as e:
            logger.error(f"Ошибка сохранения отчета: {e}")
            return False
