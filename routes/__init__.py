from .health import health_bp
from .booking import booking_bp
from .slots import slots_bp
