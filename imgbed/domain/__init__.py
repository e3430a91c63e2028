"""Domain layer: enumerations and exceptions. No infrastructure imports."""
