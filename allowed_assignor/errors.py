__all__ = [
    "KafkaError",
    "IllegalArgumentError",
    "IllegalStateError",
    "InvalidConfigurationError",
    "InconsistentGroupProtocolError",
]


class KafkaError(RuntimeError):
    retriable = False
    # whether metadata should be refreshed on error
    invalid_metadata = False

    def __str__(self) -> str:
        if not self.args:
            return self.__class__.__name__
        return f"{self.__class__.__name__}: {super().__str__()}"


class IllegalArgumentError(KafkaError):
    """Raised when an operation is called with input that breaks its
    contract, for example assigning partitions to an empty group.
    """


class IllegalStateError(KafkaError):
    pass


class InvalidConfigurationError(IllegalArgumentError):
    """The allowed partitions option could not be normalized.

    Raised at configuration time, before the member ever joins a group.
    """


class InconsistentGroupProtocolError(IllegalStateError):
    message = "INCONSISTENT_GROUP_PROTOCOL"
    description = (
        "Returned when the members of a group do not agree on the assignment"
        " strategy or advertise different topic subscriptions."
    )
