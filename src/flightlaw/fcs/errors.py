"""Exceptions raised while assembling flight control systems.

Only load-time problems are exceptions. Nothing raised here escapes a
simulation frame: channel execution and the engine tick log and carry on.
"""


class StructuralConfigError(Exception):
    """A system document cannot be assembled.

    Raised for malformed documents, unresolvable system files, undefined
    channel enable properties and invalid component parameters. The load
    that raised it leaves previously loaded systems untouched.
    """


class UnknownComponentKind(Exception):
    """A channel element names a component kind that does not exist.

    The loader logs and skips the element; this is never fatal.
    """

    def __init__(self, tag: str, channel: str = "") -> None:
        self.tag = tag
        self.channel = channel
        where = f" in channel '{channel}'" if channel else ""
        super().__init__(f"Unknown FCS component: {tag}{where}")
