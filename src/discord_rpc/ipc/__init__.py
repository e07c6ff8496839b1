"""Wire-level pieces: framing, transports, handshake, correlation and routing."""
