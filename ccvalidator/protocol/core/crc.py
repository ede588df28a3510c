def crc16(buf: bytes, *, seed: int = 0x0000, poly: int = 0x8408) -> int:
    """Reflected CRC-16 (CCNET variant: poly 0x8408, seed 0, LSB first)."""
    crc = seed & 0xFFFF
    for b in buf:
        crc ^= b & 0xFF
        for _ in range(8):
            crc = (crc >> 1) ^ poly if (crc & 0x0001) else (crc >> 1)
    return crc
