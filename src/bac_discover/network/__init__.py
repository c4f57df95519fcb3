"""BACnet addressing and NPDU encoding/decoding."""
