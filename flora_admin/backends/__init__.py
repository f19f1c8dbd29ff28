"""Backend implementations."""

from flora_admin.backends.employees import LocationEmployeeBackend
from flora_admin.backends.locations import LocationBackend, UserBackend
from flora_admin.backends.taxes import LocationTaxBackend

__all__ = ["LocationTaxBackend", "LocationEmployeeBackend", "LocationBackend", "UserBackend"]
