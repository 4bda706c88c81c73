import io
import typing

import mido
import pytest

from midi.vlq import encode_vlq


def header_bytes (fmt: int = 0, tracks: int = 1, division: int = 480) -> bytes:

    """Build an MThd chunk."""

    return b"MThd" + (6).to_bytes(4, "big") + fmt.to_bytes(2, "big") + tracks.to_bytes(2, "big") + division.to_bytes(2, "big")


def track_bytes (payload: bytes) -> bytes:

    """Wrap an event payload in an MTrk chunk."""

    return b"MTrk" + len(payload).to_bytes(4, "big") + payload


def tempo_event (us_per_quarter: int, delta: int = 0) -> bytes:

    """Delta-time plus a Set Tempo meta event."""

    return encode_vlq(delta) + bytes([0xFF, 0x51, 0x03]) + us_per_quarter.to_bytes(3, "big")


def channel_event (status: int, *data: int, delta: int = 0) -> bytes:

    """Delta-time, status byte and data bytes."""

    return encode_vlq(delta) + bytes([status, *data])


def running_event (*data: int, delta: int = 0) -> bytes:

    """Delta-time and data bytes with the status byte left out."""

    return encode_vlq(delta) + bytes(data)


END_OF_TRACK = bytes([0x00, 0xFF, 0x2F, 0x00])


def smf (*payloads: bytes, fmt: int = 0, division: int = 480) -> bytes:

    """A complete file: header plus one track chunk per payload."""

    return header_bytes(fmt, len(payloads), division) + b"".join(track_bytes(p) for p in payloads)


@pytest.fixture
def mido_file () -> typing.Callable[..., bytes]:

    """Factory turning lists of mido messages into SMF bytes."""

    def _build (*tracks: typing.List[mido.Message], ticks_per_beat: int = 480, type: int = 1) -> bytes:

        mid = mido.MidiFile(type=type, ticks_per_beat=ticks_per_beat)

        for messages in tracks:
            track = mido.MidiTrack()
            track.extend(messages)
            mid.tracks.append(track)

        buf = io.BytesIO()
        mid.save(file=buf)
        return buf.getvalue()

    return _build
