"""
Асинхронный сканер диапазона IPv4-адресов
"""

__version__ = "1.0.0"
__author__ = "IP Scanner Team"

from .address_range import AddressRange, ip_to_int, int_to_ip
from .config import SweepConfig, ConfigLoader, ProbeOutcome, ProbeStatus
from .errors import SweepError, AddressFormatError, CollectorDesyncError
from .prober import ProbeTask, Prober, SystemPingProber, FakeProber
from .projector import ResultProjector, ResultRecord
from .scanner import SweepEngine
from .reporter import ReportGenerator
