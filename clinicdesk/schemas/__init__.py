# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .appointments.appointment import *
from .patients.patient import *
from .appointment_types.appointment_type import *
