"""
Incremental decoding with live sync adjustment.

Demonstrates feeding a subtitle stream to a decoder chunk by chunk, the way
a media pipeline delivers packets, while another thread nudges the sync
offset like a user pressing the +/- subtitle delay buttons.

Pipeline:
1. Create a decoder for the declared stream type
2. Feed RawChunk packets in order
3. Adjust the offset from a "UI" thread while decoding runs
"""

import logging
import threading
import time

from subkit import (
    DecoderConfig,
    FormatHint,
    MimeTypes,
    OutputOptions,
    RawChunk,
    SubtitleDecoderFactory,
    SubtitleOffset,
)

# Configure logging to see subkit internal logs
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

PACKETS = [
    b"WEBVTT\n\n00:00:01.000 --> 00:00:03.000\nFirst line\n",
    b"00:00:04.000 --> 00:00:06.000\nPlease rate this subtitle at www.example.org\nHelp other users to choose the best subtitles\n",
    b"00:00:07.000 --> 00:00:09.000\n<i>Third</i> line\n",
    b"\x00\x00not a subtitle\xff\xfe",
    b"00:00:10.000 --> 00:00:12.000\nStill decoding after a bad packet\n",
]


def main():
    offset = SubtitleOffset()
    factory = SubtitleDecoderFactory(
        offset_provider=offset,
        config=DecoderConfig(extra_bloat_patterns=[r"Synced\s+by\s+\w+"]),
    )
    decoder = factory.create_decoder(FormatHint(mime_type=MimeTypes.TEXT_VTT))

    # Simulated UI thread: shift subtitles earlier by 250ms twice
    def adjust_sync():
        for _ in range(2):
            time.sleep(0.05)
            offset.shift(250)
            print(f"  (sync offset now {offset.current_offset_ms()}ms)")

    ui_thread = threading.Thread(target=adjust_sync)
    ui_thread.start()

    for sequence, packet in enumerate(PACKETS):
        print(f"\nPacket {sequence}:")
        decoder.parse(
            RawChunk(packet, sequence=sequence),
            lambda cue: print(f"  {cue.start_time_us / 1_000_000:.3f}s  {cue.text!r}"),
            OutputOptions.all_cues(),
        )
        time.sleep(0.04)

    ui_thread.join()

    # The factory only keeps a weak reference to the decoder it made
    print(f"\nLatest decoder: {factory.latest_decoder!r}")
    del decoder
    print(f"After release: {factory.latest_decoder!r}")

if __name__ == "__main__":
    main()
