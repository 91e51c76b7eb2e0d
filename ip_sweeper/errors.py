"""
Иерархия исключений сканера
"""


class SweepError(Exception):
    """Базовая ошибка сканирования диапазона"""


class AddressFormatError(SweepError, ValueError):
    """Некорректный IPv4-адрес или выход за пределы 32 бит"""


class CollectorDesyncError(SweepError, AssertionError):
    """Нарушение согласованности счетчиков сборщика результатов"""
