"""AES-OCB encryption of UDP voice packets with nonce tracking."""

from __future__ import annotations

import hmac
import secrets
import time

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import DecryptEof, DecryptLate, DecryptMac, DecryptRepeat
from .voice import VoicePacket, decode_voice_packet, encode_voice_packet

KEY_SIZE = 16
BLOCK_SIZE = 16

_MASK128 = (1 << 128) - 1
_INITIAL_DECRYPT_NONCE = 1 << 127
_LATE_WINDOW = 30


def _s2(block: int) -> int:
    rotated = ((block << 1) | (block >> 127)) & _MASK128
    return rotated ^ ((rotated & 1) * 0x86)


class CryptState:
    """Keys, nonces and statistics of one client's encrypted voice channel."""

    def __init__(self, key: bytes | None = None) -> None:
        key = secrets.token_bytes(KEY_SIZE) if key is None else bytes(key)
        if len(key) != KEY_SIZE:
            raise ValueError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
        self.key = key
        cipher = Cipher(algorithms.AES(key), modes.ECB())
        self._encryptor = cipher.encryptor()
        self._decryptor = cipher.decryptor()
        self.reset()

    def reset(self) -> None:
        """Reset nonces, replay history and statistics."""
        self._encrypt_nonce = 0
        self._decrypt_nonce = _INITIAL_DECRYPT_NONCE
        self._history = bytearray(0x100)
        self.good = 0
        self.late = 0
        self.lost = 0
        self.resync = 0
        self.last_good = time.monotonic()

    @property
    def encrypt_nonce(self) -> bytes:
        """Nonce used for encrypting, little endian."""
        return self._encrypt_nonce.to_bytes(BLOCK_SIZE, "little")

    @property
    def decrypt_nonce(self) -> bytes:
        """Nonce used for decrypting, little endian."""
        return self._decrypt_nonce.to_bytes(BLOCK_SIZE, "little")

    def set_decrypt_nonce(self, nonce: bytes) -> None:
        """Resynchronise the decrypt nonce from the client's little-endian value."""
        if len(nonce) != BLOCK_SIZE:
            raise ValueError(f"nonce must be {BLOCK_SIZE} bytes, got {len(nonce)}")
        self._decrypt_nonce = int.from_bytes(nonce, "little")
        self.resync += 1

    def encrypt(self, packet: VoicePacket, clientbound: bool = True) -> bytes:
        """Encode and encrypt a voice packet, returning the datagram."""
        self._encrypt_nonce = (self._encrypt_nonce + 1) & _MASK128
        body, tag = self._ocb_encrypt(encode_voice_packet(packet, clientbound), self._encrypt_nonce)
        header = bytes([self._encrypt_nonce & 0xFF]) + tag.to_bytes(BLOCK_SIZE, "big")[:3]
        return header + body

    def decrypt(self, data: bytes, clientbound: bool = False) -> VoicePacket:
        """Decrypt and decode a datagram, tracking late, lost and repeated packets."""
        if len(data) < 4:
            raise DecryptEof()
        header, body = bytes(data[:4]), bytes(data[4:])
        nonce_0 = header[0]

        saved = self._decrypt_nonce
        late = False
        lost = 0

        if (self._decrypt_nonce + 1) & 0xFF == nonce_0:
            self._decrypt_nonce = (self._decrypt_nonce + 1) & _MASK128
        else:
            diff = (nonce_0 - self._decrypt_nonce) & 0xFF
            if diff >= 0x80:
                diff -= 0x100
            self._decrypt_nonce = (self._decrypt_nonce + diff) & _MASK128

            if diff > 0:
                lost = diff - 1
            elif diff > -_LATE_WINDOW:
                if self._history[nonce_0] == (self._decrypt_nonce >> 8) & 0xFF:
                    self._decrypt_nonce = saved
                    raise DecryptRepeat()
                late = True
                lost = -1
            else:
                self._decrypt_nonce = saved
                raise DecryptLate()

        plain, tag = self._ocb_decrypt(body, self._decrypt_nonce)
        if not hmac.compare_digest(header[1:4], tag.to_bytes(BLOCK_SIZE, "big")[:3]):
            self._decrypt_nonce = saved
            raise DecryptMac()

        self._history[nonce_0] = (self._decrypt_nonce >> 8) & 0xFF
        self.good += 1
        self.last_good = time.monotonic()

        if late:
            self.late += 1
            self._decrypt_nonce = saved

        self.lost = (self.lost + lost) & 0xFFFF_FFFF

        return decode_voice_packet(plain, clientbound)

    def _aes_encrypt(self, block: int) -> int:
        return int.from_bytes(self._encryptor.update(block.to_bytes(BLOCK_SIZE, "big")), "big")

    def _aes_decrypt(self, block: int) -> int:
        return int.from_bytes(self._decryptor.update(block.to_bytes(BLOCK_SIZE, "big")), "big")

    def _initial_offset(self, nonce: int) -> int:
        return self._aes_encrypt(int.from_bytes(nonce.to_bytes(BLOCK_SIZE, "little"), "big"))

    def _ocb_encrypt(self, plain: bytes, nonce: int) -> tuple[bytes, int]:
        offset = self._initial_offset(nonce)
        checksum = 0
        out = bytearray()

        full_blocks = (len(plain) - 1) // BLOCK_SIZE if plain else 0
        for start in range(0, full_blocks * BLOCK_SIZE, BLOCK_SIZE):
            offset = _s2(offset)
            block = int.from_bytes(plain[start:start + BLOCK_SIZE], "big")
            out += (self._aes_encrypt(offset ^ block) ^ offset).to_bytes(BLOCK_SIZE, "big")
            checksum ^= block

        offset = _s2(offset)
        rest = plain[full_blocks * BLOCK_SIZE:]
        size = len(rest)
        pad = self._aes_encrypt((size * 8) ^ offset)
        block = int.from_bytes(rest + pad.to_bytes(BLOCK_SIZE, "big")[size:], "big")
        out += (pad ^ block).to_bytes(BLOCK_SIZE, "big")[:size]
        checksum ^= block

        return bytes(out), self._aes_encrypt(offset ^ _s2(offset) ^ checksum)

    def _ocb_decrypt(self, encrypted: bytes, nonce: int) -> tuple[bytes, int]:
        offset = self._initial_offset(nonce)
        checksum = 0
        out = bytearray()

        full_blocks = (len(encrypted) - 1) // BLOCK_SIZE if encrypted else 0
        for start in range(0, full_blocks * BLOCK_SIZE, BLOCK_SIZE):
            offset = _s2(offset)
            block = int.from_bytes(encrypted[start:start + BLOCK_SIZE], "big")
            plain = self._aes_decrypt(offset ^ block) ^ offset
            out += plain.to_bytes(BLOCK_SIZE, "big")
            checksum ^= plain

        offset = _s2(offset)
        rest = encrypted[full_blocks * BLOCK_SIZE:]
        size = len(rest)
        pad = self._aes_encrypt((size * 8) ^ offset)
        plain = int.from_bytes(rest + bytes(BLOCK_SIZE - size), "big") ^ pad
        out += plain.to_bytes(BLOCK_SIZE, "big")[:size]
        checksum ^= plain

        return bytes(out), self._aes_encrypt(offset ^ _s2(offset) ^ checksum)