from enum import Enum


class PermitSchemaVersion(Enum):
    V1 = "V1"

    @classmethod
    def from_string(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unsupported permit schema version: {value}")
