"""Flight control system engine.

The engine owns the control registers and runs the channels of components
loaded from flight control, autopilot and system documents.

Typical usage:
    from flightlaw.fcs.flight_control import FlightControlSystem, SystemKind
"""
