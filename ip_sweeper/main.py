"""
Главный модуль сканера диапазона IPv4
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from .address_range import AddressRange
from .config import ConfigLoader, SweepConfig, ReportFormat
from .errors import SweepError
from .prober import FakeProber, SystemPingProber
from .projector import ResultRecord
from .reporter import ReportGenerator
from .scanner import SweepEngine
from .utils import (
    setup_logging,
    print_banner,
    print_summary,
    validate_environment,
    resolve_hostnames,
    ConsoleProgress,
)

logger = logging.getLogger(__name__)


def build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Асинхронный ICMP-сканер непрерывного диапазона IPv4",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры:
  ip-sweeper 192.168.1.1 192.168.1.254
  ip-sweeper 10.0.0.1 10.0.0.50 --interval 30 --resolve --format text
  ip-sweeper 10.0.0.1 10.0.0.50 --raw --format json -o raw.json
"""
    )
    parser.add_argument('start', nargs='?', help='Начальный адрес диапазона')
    parser.add_argument('end', nargs='?', help='Конечный адрес диапазона (включительно)')
    parser.add_argument('--interval', type=int, dest='interval_ms',
                        help='Пауза между отправками, мс (по умолчанию: 20)')
    parser.add_argument('--timeout', type=int, dest='timeout_ms',
                        help='Таймаут одной проверки, мс (по умолчанию: 2000)')
    parser.add_argument('--max-in-flight', type=int, dest='max_in_flight',
                        help='Ограничение одновременных проверок (по умолчанию: нет)')
    parser.add_argument('--raw', action='store_const', const=True, dest='raw_output',
                        help='Выводить исходные результаты проверок')
    parser.add_argument('--resolve', action='store_const', const=True, dest='resolve_hostnames',
                        help='Добавить столбец HostName (обратный DNS)')
    parser.add_argument('--format', choices=['csv', 'json', 'text'], dest='report_format',
                        help='Формат отчета (по умолчанию: csv)')
    parser.add_argument('-o', '--output', dest='output_file', help='Файл отчета')
    parser.add_argument('-c', '--config', help='Файл конфигурации (YAML или JSON)')
    parser.add_argument('--init-config', action='store_true',
                        help='Создать sweep_config.yaml со значениями по умолчанию и выйти')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Уровень логирования')
    parser.add_argument('--no-progress', action='store_const', const=False, dest='show_progress',
                        help='Не показывать прогресс')
    parser.add_argument('--fake', action='store_true',
                        help='Пробный запуск без сети: отвечает каждый второй адрес')
    return parser


def _fake_prober(address_range: AddressRange) -> FakeProber:
    script = {}
    for index, address in enumerate(address_range):
        if index % 2 == 0:
            script[address] = {"status": "success", "bytes": 32, "ttl": 64,
                               "rtt_ms": 1 + index % 5, "delay": 0.005}
    return FakeProber(script=script)


def run(argv: Optional[List[str]] = None) -> int:
    """Точка входа командной строки"""
    parser = build_argparser()
    args = parser.parse_args(argv)

    if args.init_config:
        path = ConfigLoader.save_default_config()
        print(f"Создан файл конфигурации: {path}")
        return 0

    overrides = {
        key: getattr(args, key)
        for key in ('interval_ms', 'timeout_ms', 'max_in_flight', 'raw_output',
                    'resolve_hostnames', 'report_format', 'output_file', 'log_level',
                    'show_progress')
    }
    overrides['start_address'] = args.start
    overrides['end_address'] = args.end

    try:
        config = ConfigLoader.load(args.config, overrides=overrides)
    except (ValueError, TypeError) as e:
        print(f"Ошибка конфигурации: {e}")
        return 1

    if not config.start_address or not config.end_address:
        parser.error("Укажите начальный и конечный адреса (или задайте их в конфигурации)")

    setup_logging(config, console=not config.show_progress)
    print_banner()

    if not args.fake and not validate_environment():
        return 1

    try:
        address_range = AddressRange(config.start_address, config.end_address)
        print_summary(config, len(address_range))

        prober = _fake_prober(address_range) if args.fake else SystemPingProber()
        progress = ConsoleProgress() if config.show_progress else None
        engine = SweepEngine(config, prober=prober, progress=progress)

        started = time.time()
        results = engine.sweep(config.start_address, config.end_address)
        if progress:
            progress.finish(time.time() - started)

        if config.resolve_hostnames and not config.raw_output:
            print("Разрешение имен хостов...")
            results = resolve_hostnames([r for r in results if isinstance(r, ResultRecord)])

        reporter = ReportGenerator(config)
        report = reporter.generate(results, engine.last_summary)
        reporter.save_report(report)

        # Повторный вывод результатов в порядке адресов
        if config.report_format is not ReportFormat.TEXT:
            text_config = SweepConfig.from_dict({**config.to_dict(), "report_format": "text"})
            report = ReportGenerator(text_config).generate(results, engine.last_summary)
        print("\n" + report)
        print(f"\nОтчет сохранен в файл: {config.output_file}")

    except KeyboardInterrupt:
        print("\n\nСканирование прервано пользователем")
        return 130
    except (SweepError, ValueError) as e:
        logger.error(f"Ошибка сканирования: {e}")
        print(f"\nОшибка: {e}")
        return 1

    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
