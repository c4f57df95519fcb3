"""BACnet enumerations and primitive value types."""
