"""
Basic SubKit usage example.

Demonstrates decoding a subtitle file from disk, whatever its format or
encoding, and printing its cues.
"""

import sys

from subkit import FormatHint, RawChunk, SubtitleDecoderFactory, SubtitleOffset, micros_to_timestamp, mime_type_from_path


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "subtitles.srt"

    # Build the declared hint from the file extension
    hint = FormatHint(mime_type=mime_type_from_path(path))

    factory = SubtitleDecoderFactory(offset_provider=SubtitleOffset())
    if not factory.supports_format(hint):
        print(f"Unsupported subtitle type for {path}, relying on content sniffing")

    decoder = factory.create_decoder(hint)

    with open(path, "rb") as f:
        data = f.read()

    def print_cue(timed_cue):
        start = micros_to_timestamp(timed_cue.start_time_us) if timed_cue.start_time_us is not None else "--:--:--.---"
        print(f"[{start}] {timed_cue.text}")

    decoder.parse(RawChunk(data), print_cue)

    print(f"\nDetected format: {decoder.selected_format.value if decoder.selected_format else 'none'}")
    print(f"Replacement behavior: {decoder.cue_replacement_behavior.value}")

if __name__ == "__main__":
    main()
