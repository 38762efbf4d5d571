from .compensators import Coefficients2p2z, Coefficients3p3z, Controller2p2z, Controller3p3z
from .pi import ControllerPI
from .pid import ControllerPID

__all__ = [
    "Coefficients2p2z",
    "Coefficients3p3z",
    "Controller2p2z",
    "Controller3p3z",
    "ControllerPI",
    "ControllerPID",
]
