from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from typing import runtime_checkable


@runtime_checkable
class LeaderElector(Protocol):
    def initialize(self) -> None: ...

    def run(self) -> None: ...

    def stop(self) -> None: ...

    def is_leader(self) -> bool: ...

    def health_check(self) -> None: ...


@dataclass
class DummyLeaderElector:
    """Leader elector for setups that run without distributed coordination.

    Every lifecycle call succeeds and ``is_leader`` reports the fixed flag.
    """

    leader: bool = False

    def initialize(self) -> None:
        return None

    def run(self) -> None:
        return None

    def stop(self) -> None:
        return None

    def is_leader(self) -> bool:
        return self.leader

    def health_check(self) -> None:
        return None
