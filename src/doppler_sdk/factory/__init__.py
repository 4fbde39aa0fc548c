from . import encoders
from .doppler_factory import DopplerFactory

__all__ = (
    "DopplerFactory",
    "encoders",
)
