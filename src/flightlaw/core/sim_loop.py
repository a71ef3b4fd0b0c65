"""Simulation loop with a fixed timestep.

This module drives anything with a run(holding) method, usually an
Aircraft, once per frame of fixed length. Frames can be stepped as fast as
possible (batch runs, tests) or paced against the wall clock.

Typical usage example:
    from flightlaw.core.sim_loop import SimulationLoop

    loop = SimulationLoop(aircraft, dt=1.0 / 120.0)
    loop.run_steps(600)      # five simulated seconds
    loop.run_realtime(10.0)  # ten wall-clock seconds
"""

import logging
import time
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Steppable(Protocol):
    def run(self, holding: bool = False) -> Any: ...


class SimulationLoop:
    """Fixed-timestep driver.

    While paused, frames are still issued but with holding=True, so the
    target keeps its state and time does not advance.

    Examples:
        >>> loop = SimulationLoop(aircraft, dt=0.01)
        >>> loop.run_steps(100)
        100
        >>> loop.sim_time
        1.0
    """

    def __init__(self, target: Steppable, dt: float = 1.0 / 120.0) -> None:
        """Initialize the loop.

        Args:
            target: Object stepped every frame.
            dt: Simulated seconds per frame.

        Raises:
            ValueError: If dt is not positive.
        """
        if dt <= 0.0:
            raise ValueError(f"Frame time step must be positive, got {dt}")

        self.target = target
        self.dt = dt

        self.running = False
        self.paused = False

        self.frame_count = 0
        self.sim_time = 0.0
        self.accumulator = 0.0

    def step(self) -> None:
        """Execute one frame."""
        self.target.run(holding=self.paused)
        self.frame_count += 1
        if not self.paused:
            self.sim_time += self.dt

    def run_steps(self, count: int) -> int:
        """Execute a number of frames back to back.

        Returns:
            Number of frames executed.
        """
        self.running = True
        executed = 0
        try:
            while self.running and executed < count:
                self.step()
                executed += 1
        finally:
            self.running = False
        logger.debug("Ran %d frames, simulation time %.3fs", executed, self.sim_time)
        return executed

    def run_realtime(self, duration: float | None = None) -> None:
        """Execute frames paced against the wall clock.

        Args:
            duration: Wall-clock seconds to run; None runs until stop().
        """
        self.running = True
        start = last = time.monotonic()
        logger.info("Simulation loop started")

        try:
            while self.running:
                now = time.monotonic()
                if duration is not None and now - start >= duration:
                    break

                self.accumulator += now - last
                last = now

                # Clamp accumulator to prevent spiral of death
                max_accumulator = self.dt * 5
                if self.accumulator > max_accumulator:
                    logger.warning("Frame accumulator clamped: %.3fs", self.accumulator)
                    self.accumulator = max_accumulator

                while self.accumulator >= self.dt:
                    self.step()
                    self.accumulator -= self.dt

                sleep_time = self.dt - (time.monotonic() - now)
                if sleep_time > 0:
                    time.sleep(sleep_time)

        except KeyboardInterrupt:
            logger.info("Simulation loop interrupted by user")

        finally:
            self.running = False
            logger.info("Simulation loop stopped")

    def stop(self) -> None:
        """Stop the loop at the end of the current frame."""
        self.running = False
        logger.info("Simulation loop stop requested")

    def pause(self) -> None:
        """Hold the target; frames keep being issued."""
        self.paused = True
        logger.info("Simulation loop paused")

    def resume(self) -> None:
        """Resume normal frames."""
        self.paused = False
        self.accumulator = 0.0  # Reset to avoid catchup
        logger.info("Simulation loop resumed")

    def is_running(self) -> bool:
        return self.running

    def is_paused(self) -> bool:
        return self.paused
