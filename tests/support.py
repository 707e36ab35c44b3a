"""Resource doubles shared by the test suite."""


class CountingResource:
    """Releasable without an owning_scope slot."""

    def __init__(self, name: str = "resource") -> None:
        self.name = name
        self.release_calls = 0

    def release(self) -> None:
        self.release_calls += 1

    def __repr__(self) -> str:
        return f"CountingResource({self.name!r})"


class ValueResource(CountingResource):
    """Resources that compare equal by value, like two tensors holding the same data."""

    def __init__(self, value: int) -> None:
        super().__init__(name=f"value-{value}")
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ValueResource) and other.value == self.value

    def __hash__(self) -> int:
        return hash(self.value)


class FailingResource(CountingResource):
    """Counts the release attempt, then raises."""

    def release(self) -> None:
        super().release()
        raise RuntimeError(f"native free failed for {self.name}")
