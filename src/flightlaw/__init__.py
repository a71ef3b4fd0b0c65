"""Flight control law engine.

Control laws, autopilots and aircraft system logic are described as
channels of signal-processing components in XML system files, assembled
at load time and executed once per simulation frame.
"""

__version__ = "0.1.0"
