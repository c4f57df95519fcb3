"""Who-Is / I-Am service request encoding."""
