"""
Генерация последовательности IPv4-адресов по границам диапазона
"""

import ipaddress
from typing import Iterator, Union

from .errors import AddressFormatError

MAX_IPV4 = 2 ** 32 - 1

AddressLike = Union[str, int, ipaddress.IPv4Address]


def ip_to_int(address: AddressLike) -> int:
    """
    Преобразование адреса в 32-битное целое

    Args:
        address: Адрес в точечной нотации, целое или IPv4Address

    Returns:
        Целочисленное значение адреса
    """
    if isinstance(address, ipaddress.IPv4Address):
        return int(address)
    if isinstance(address, bool):
        raise AddressFormatError(f"Некорректный адрес: {address!r}")
    if isinstance(address, int):
        if not 0 <= address <= MAX_IPV4:
            raise AddressFormatError(f"Адрес вне диапазона IPv4: {address}")
        return address
    try:
        return int(ipaddress.IPv4Address(str(address).strip()))
    except ipaddress.AddressValueError as e:
        raise AddressFormatError(f"Некорректный IPv4-адрес '{address}': {e}") from e


def int_to_ip(value: int) -> str:
    """Преобразование целого в строку вида a.b.c.d"""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_IPV4:
        raise AddressFormatError(f"Адрес вне диапазона IPv4: {value!r}")
    return str(ipaddress.IPv4Address(value))


def parse_address(address: AddressLike) -> str:
    """Нормализация адреса к канонической строке"""
    return int_to_ip(ip_to_int(address))


class AddressRange:
    """Включающий диапазон адресов от start до end"""

    def __init__(self, start: AddressLike, end: AddressLike):
        self.start = ip_to_int(start)
        self.end = ip_to_int(end)

    @property
    def is_reversed(self) -> bool:
        """Конечный адрес меньше начального, диапазон пуст"""
        return self.end < self.start

    def __len__(self) -> int:
        if self.is_reversed:
            return 0
        return self.end - self.start + 1

    def __iter__(self) -> Iterator[str]:
        # range() не переполняется и создает новый обход при каждом вызове
        for value in range(self.start, self.end + 1):
            yield int_to_ip(value)

    def integers(self) -> Iterator[int]:
        """Обход диапазона в целочисленной форме"""
        return iter(range(self.start, self.end + 1))

    def __repr__(self) -> str:
        return f"AddressRange({int_to_ip(self.start)!r}, {int_to_ip(self.end)!r})"
