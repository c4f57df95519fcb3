"""BACnet/IP datalink: BVLL framing, UDP transport and foreign-device registration."""
