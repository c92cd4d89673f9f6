# Routers package
from . import appointments_router
from . import patients_router
from . import appointment_types_router

__all__ = [
    "appointments_router",
    "patients_router",
    "appointment_types_router",
]
