from .base import AvailabilityChecker, AvailabilityResult, AvailabilityStatus
from .doh_checker import DoHChecker
from .dns_checker import DNSChecker
from .registrar_checker import RegistrarChecker
from .namecheap_checker import NamecheapChecker
from .batch_runner import BatchProgress, BatchRunner, RunContext, RunOutcome, RunStatus, check_all
from .factory import create_checker

__all__ = [
    'AvailabilityChecker', 'AvailabilityResult', 'AvailabilityStatus',
    'DoHChecker', 'DNSChecker', 'RegistrarChecker', 'NamecheapChecker',
    'BatchProgress', 'BatchRunner', 'RunContext', 'RunOutcome', 'RunStatus', 'check_all',
    'create_checker',
]
