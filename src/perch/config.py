"""Router configuration.

RouterConfig is a frozen dataclass, immutable after creation. Dispatch
arguments left as ``None`` fall back to these values.
"""

from dataclasses import dataclass

from perch.output import CaptureMode


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(capture=CaptureMode.RETURN, send_response=False)
    """

    # Dispatch
    send_response: bool = True
    capture: CaptureMode = CaptureMode.NONE

    # Registration
    namespace: str = ""  # Initial prefix for every registered route

    # Pattern cache
    cache_key_prefix: str = "route:"
