"""Channels: ordered component lists with an optional enable gate.

Components run in document order, so a component sees the outputs its
predecessors computed in the same frame. When the gate property reads
false the channel does nothing and every output keeps its last value.
"""

import logging

from flightlaw.core.properties import PropertyNode
from flightlaw.fcs.components.base import FCSComponent

logger = logging.getLogger(__name__)


class Channel:
    """An ordered sequence of components.

    Attributes:
        name: Channel name from the "name" attribute.
        gate: Enable property, or None for an always-on channel.
        components: Components in execution order.
    """

    def __init__(self, name: str = "", gate: PropertyNode | None = None) -> None:
        self.name = name
        self.gate = gate
        self.components: list[FCSComponent] = []

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self):
        return iter(self.components)

    def add(self, component: FCSComponent) -> None:
        self.components.append(component)

    def is_enabled(self) -> bool:
        return self.gate is None or self.gate.get_bool_value()

    def execute(self) -> bool:
        """Run every component once, unless the gate is closed.

        A component that raises is logged and skipped for this frame; the
        others still run.

        Returns:
            True if the channel ran.
        """
        if not self.is_enabled():
            return False

        for component in self.components:
            try:
                component.run()
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception(
                    "Component %s in channel %s failed; output held at %g",
                    component.name,
                    self.name,
                    component.output,
                )
        return True

    def reset(self) -> None:
        """Clear every component's transient state."""
        for component in self.components:
            component.reset()

    def unbind(self) -> None:
        """Release every property the components tied."""
        for component in self.components:
            component.unbind()

    def __repr__(self) -> str:
        gate = self.gate.get_full_path() if self.gate is not None else None
        return f"Channel({self.name!r}, components={len(self.components)}, gate={gate!r})"
