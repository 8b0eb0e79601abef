"""
DSMR P1 telegram decoder package.

Frames the byte stream from a smart meter's P1 port into telegrams, verifies
their CRC-16 checksum and decodes the OBIS register lines into a typed,
immutable Telegram model.

CHANGELOG:
- 2026-02-14: Initial creation (STORY-001)

TODO:
- None
"""
