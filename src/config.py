from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """
    Run-scoped engine settings.

    strict_unknown_types: abort the run on a record with an unrecognized type
    instead of skipping it.
    """

    strict_unknown_types: bool = False
