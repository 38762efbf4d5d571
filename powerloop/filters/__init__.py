from .biquad import ButterworthHPF, ButterworthLPF, ChebyshevHPF, ChebyshevLPF
from .scalar import FirstOrderIIR, ScalarKalman

__all__ = [
    "ButterworthLPF",
    "ButterworthHPF",
    "ChebyshevLPF",
    "ChebyshevHPF",
    "FirstOrderIIR",
    "ScalarKalman",
]
