from .svpwm import SpaceVectorModulator, SvpwmOutput, average_voltage, svpwm

__all__ = ["SpaceVectorModulator", "SvpwmOutput", "average_voltage", "svpwm"]
