"""Application-layer encoding: tags, primitive values, and APDUs."""
