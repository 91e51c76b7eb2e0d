"""
Вспомогательные утилиты
"""

import logging
import platform
import shutil
import socket
import sys
from typing import List, Optional, Dict, TextIO

import colorama

from .config import SweepConfig
from .progress import ProgressUpdate
from .projector import ResultRecord

logger = logging.getLogger(__name__)

_colorama_ready = False


def setup_logging(config: SweepConfig, console: bool = True):
    """
    Настройка логирования

    Args:
        config: Конфигурация сканера
        console: Дублировать журнал в консоль
    """
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    # Очищаем существующие обработчики
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format, date_format)

    # Файловый обработчик
    file_handler = logging.FileHandler(config.log_file, encoding='utf-8')
    file_handler.setFormatter(formatter)
    file_handler.setLevel(log_level)
    root_logger.addHandler(file_handler)

    # Консольный обработчик
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

    root_logger.setLevel(log_level)

    # Отключаем логирование для некоторых библиотек
    logging.getLogger('asyncio').setLevel(logging.WARNING)


def init_colors():
    """Однократная инициализация colorama"""
    global _colorama_ready
    if not _colorama_ready:
        colorama.just_fix_windows_console()
        _colorama_ready = True


def get_color_codes(enabled: bool = True) -> Dict[str, str]:
    """
    Получение кодов цветов для терминала

    Returns:
        Словарь с кодами цветов
    """
    colors = {
        'reset': colorama.Style.RESET_ALL,
        'bold': colorama.Style.BRIGHT,
        'red': colorama.Fore.RED,
        'green': colorama.Fore.GREEN,
        'yellow': colorama.Fore.YELLOW,
        'cyan': colorama.Fore.CYAN,
    }
    if not enabled:
        return {k: '' for k in colors}
    init_colors()
    return colors


class ConsoleProgress:
    """Консольный индикатор прогресса с двумя шкалами"""

    BAR_WIDTH = 20

    def __init__(self, stream: Optional[TextIO] = None, colors: bool = True):
        self.stream = stream or sys.stdout
        self.colors = get_color_codes(colors and self.stream.isatty())

    def _bar(self, percent: float, color: str) -> str:
        filled = int(self.BAR_WIDTH * percent / 100)
        bar = '#' * filled + '-' * (self.BAR_WIDTH - filled)
        return f"{self.colors[color]}[{bar}]{self.colors['reset']} {percent:5.1f}%"

    def __call__(self, update: ProgressUpdate):
        line = (f"\rОтправка {self._bar(update.submission_percent, 'cyan')} | "
                f"Ответы {self._bar(update.completion_percent, 'green')} | {update.status}")
        self.stream.write(line.ljust(shutil.get_terminal_size((120, 20)).columns - 1))
        self.stream.flush()

    def finish(self, elapsed: float):
        """Завершить отображение прогресса"""
        self.stream.write(f"\n{self.colors['bold']}Сканирование завершено за "
                          f"{elapsed:.1f} секунд{self.colors['reset']}\n")
        self.stream.flush()


def resolve_hostname(address: str) -> Optional[str]:
    """Обратное разрешение имени для адреса"""
    try:
        return socket.gethostbyaddr(address)[0]
    except (socket.herror, socket.gaierror, OSError):
        return None


def resolve_hostnames(records: List[ResultRecord]) -> List[ResultRecord]:
    """
    Добавление имен хостов к записям

    Args:
        records: Записи об ответивших адресах

    Returns:
        Новые записи с заполненным полем hostname
    """
    resolved = []
    for record in records:
        hostname = resolve_hostname(record.address)
        logger.debug(f"{record.address} -> {hostname}")
        resolved.append(record.with_hostname(hostname or ""))
    return resolved


def print_banner():
    """Печать баннера при запуске"""
    banner = """
    ╔══════════════════════════════════════════════════════╗
    ║          АСИНХРОННЫЙ СКАНЕР ДИАПАЗОНА IPv4           ║
    ║          ICMP echo с фиксированным интервалом        ║
    ╚══════════════════════════════════════════════════════╝
    """
    print(banner)


def print_summary(config: SweepConfig, address_count: int):
    """
    Печать сводки перед началом сканирования

    Args:
        config: Конфигурация сканера
        address_count: Количество адресов в диапазоне
    """
    print(f"\n{'='*60}")
    print("НАСТРОЙКИ СКАНИРОВАНИЯ:")
    print(f"  Диапазон: {config.start_address} - {config.end_address}")
    print(f"  Количество адресов: {address_count}")
    print(f"  Интервал отправки: {config.interval_ms} мс")
    print(f"  Таймаут ping: {config.timeout_ms} мс")
    limit = config.max_in_flight if config.max_in_flight else "без ограничения"
    print(f"  Одновременных проверок: {limit}")
    print(f"  Режим вывода: {'сырой' if config.raw_output else 'записи'}")
    print(f"  Файл отчета: {config.output_file} ({config.report_format.value})")
    print(f"{'='*60}\n")


def validate_environment() -> bool:
    """
    Проверка наличия команды ping

    Returns:
        True если окружение корректно
    """
    if shutil.which('ping') is None:
        print("Ошибка: Команда 'ping' не найдена")
        print("Убедитесь, что ping установлен в системе")
        return False

    logger.debug(f"ОС: {platform.system()}, будет использоваться команда ping")
    return True
