from dataclasses import dataclass


class Variant:
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    """A transient title + description message for the user."""
    title: str
    description: str
    variant: str = Variant.DEFAULT
