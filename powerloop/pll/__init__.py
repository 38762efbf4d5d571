from .sogi import NotchFilter, OrthogonalSignalGenerator, PllOutput, SogiPll, wrap_angle

__all__ = ["NotchFilter", "OrthogonalSignalGenerator", "PllOutput", "SogiPll", "wrap_angle"]
