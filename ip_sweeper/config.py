"""
Модуль конфигурации и моделей данных
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, List

import yaml

logger = logging.getLogger(__name__)


class ReportFormat(Enum):
    """Формат отчета"""
    TEXT = "text"
    JSON = "json"
    CSV = "csv"


class ProbeStatus(Enum):
    """Итог одной ICMP-проверки"""
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


@dataclass
class ProbeOutcome:
    """Результат одной проверки, привязанный к токену задачи"""
    token: str
    address: str
    status: ProbeStatus
    bytes: Optional[int] = None
    ttl: Optional[int] = None
    rtt_ms: Optional[int] = None
    detail: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status is ProbeStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь (сырой режим вывода)"""
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class SweepConfig:
    """Конфигурация сканирования диапазона с валидацией"""

    # Диапазон
    start_address: Optional[str] = None
    end_address: Optional[str] = None

    # Параметры ping
    interval_ms: int = 20
    timeout_ms: int = 2000
    max_in_flight: Optional[int] = None

    # Режим вывода
    raw_output: bool = False
    resolve_hostnames: bool = False

    # Пути
    output_file: str = "sweep_results.csv"
    log_file: str = "sweeper.log"

    # Настройки вывода
    report_format: ReportFormat = ReportFormat.CSV
    log_level: str = "INFO"
    show_progress: bool = True

    def __post_init__(self):
        """Валидация значений после инициализации"""
        if isinstance(self.report_format, str):
            self.report_format = ReportFormat(self.report_format.lower())
        self._validate_values()

    def _validate_values(self):
        """Проверка корректности значений"""
        if self.interval_ms < 0:
            raise ValueError("interval_ms не может быть отрицательным")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms должен быть положительным числом")
        if self.max_in_flight is not None and self.max_in_flight <= 0:
            raise ValueError("max_in_flight должен быть положительным числом или null")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(f"log_level должен быть одним из: {valid_log_levels}")

    @property
    def interval(self) -> float:
        """Интервал между отправками в секундах"""
        return self.interval_ms / 1000.0

    @property
    def timeout(self) -> float:
        """Таймаут одной проверки в секундах"""
        return self.timeout_ms / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь"""
        data = asdict(self)
        data["report_format"] = self.report_format.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SweepConfig":
        """Создание из словаря"""
        data = dict(data)
        # Преобразуем строковый формат в Enum
        if "report_format" in data and isinstance(data["report_format"], str):
            try:
                data["report_format"] = ReportFormat(data["report_format"].lower())
            except ValueError:
                data["report_format"] = ReportFormat.CSV

        known = set(cls.__dataclass_fields__)
        unknown = [key for key in data if key not in known]
        for key in unknown:
            logger.warning(f"Неизвестный параметр конфигурации пропущен: {key}")
            data.pop(key)

        return cls(**data)


class ConfigLoader:
    """Загрузчик конфигурации"""

    CONFIG_FILES = [
        "sweep_config.yaml",
        "sweep_config.yml",
        "sweep_config.json",
        "config/sweep.yaml",
    ]

    DEFAULT_CONFIG = {
        "interval_ms": 20,
        "timeout_ms": 2000,
        "max_in_flight": None,
        "raw_output": False,
        "resolve_hostnames": False,
        "output_file": "sweep_results.csv",
        "log_file": "sweeper.log",
        "report_format": "csv",
        "log_level": "INFO",
        "show_progress": True,
    }

    @classmethod
    def load(cls, config_path: Optional[str] = None,
             overrides: Optional[Dict[str, Any]] = None) -> SweepConfig:
        """
        Загрузка конфигурации

        Args:
            config_path: Путь к файлу конфигурации (опционально)
            overrides: Значения, переопределяющие файл (например, из командной строки)

        Returns:
            Объект конфигурации
        """
        config_dict = cls.DEFAULT_CONFIG.copy()

        found_config = cls._find_config_file(config_path)

        if found_config:
            try:
                user_config = cls._load_config_file(found_config)
                config_dict.update(user_config)
                logger.info(f"Загружена конфигурация из {found_config}")
            except (OSError, yaml.YAMLError, TypeError) as e:
                logger.warning(f"Ошибка загрузки конфигурации: {e}")
                logger.info("Используются значения по умолчанию")
        else:
            if config_path:
                logger.warning(f"Файл конфигурации не найден: {config_path}")
            logger.info("Используются значения по умолчанию")

        if overrides:
            config_dict.update({k: v for k, v in overrides.items() if v is not None})

        return SweepConfig.from_dict(config_dict)

    @classmethod
    def _find_config_file(cls, config_path: Optional[str] = None) -> Optional[Path]:
        """Поиск файла конфигурации"""
        if config_path:
            path = Path(config_path)
            if path.exists():
                return path
            return None

        for config_file in cls.CONFIG_FILES:
            path = Path(config_file)
            if path.exists():
                return path

        return None

    @staticmethod
    def _load_config_file(filepath: Path) -> Dict[str, Any]:
        """Загрузка конфигурации из файла (YAML или JSON)"""
        with open(filepath, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise TypeError(f"ожидался словарь параметров, получено: {type(data).__name__}")
        return data

    @classmethod
    def save_default_config(cls, filepath: str = "sweep_config.yaml") -> Path:
        """Сохранение конфигурации по умолчанию"""
        default_path = Path(filepath)
        default_path.parent.mkdir(parents=True, exist_ok=True)
        with open(default_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(cls.DEFAULT_CONFIG, f, allow_unicode=True, sort_keys=False)
        logger.info(f"Создан файл конфигурации по умолчанию: {default_path}")
        return default_path


@dataclass
class SweepSummary:
    """Сводка по сканированию"""
    total_hosts: int = 0
    responded: int = 0
    failed: int = 0
    timed_out: int = 0
    scan_duration: float = 0.0
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    responders: List[str] = field(default_factory=list)

    @property
    def silent(self) -> int:
        """Хосты без ответа (ошибка или таймаут)"""
        return self.failed + self.timed_out

    @property
    def alive_percent(self) -> float:
        """Процент ответивших хостов"""
        if self.total_hosts == 0:
            return 0.0
        return (self.responded / self.total_hosts) * 100
