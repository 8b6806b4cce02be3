"""
Legacy one-shot decoding example.

Demonstrates the synchronous decode() entry point, which returns every cue
of a buffer as a CueSet that can be queried by playback time.
"""

from subkit import FormatHint, MimeTypes, SubtitleDecoder, micros_to_timestamp

SCRIPT = r"""[Script Info]
Title: Example
PlayResX: 1280
PlayResY: 720

[V4+ Styles]
Format: Name, Fontname, Fontsize, Alignment
Style: Default,Arial,48,2
Style: Sign,Arial,36,8

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
Dialogue: 0,0:00:01.00,0:00:04.00,Default,,0,0,0,,Where are we going?
Dialogue: 0,0:00:02.50,0:00:05.00,Sign,,0,0,0,,{\pos(640,100)}NORTH\NExit 12
Dialogue: 0,0:00:05.00,0:00:07.00,Default,,0,0,0,,Advertise your product or brand here
"""


def main():
    decoder = SubtitleDecoder(FormatHint(mime_type=MimeTypes.TEXT_SSA))

    cue_set = decoder.decode(SCRIPT.encode("utf-8"), reset=True)
    print(f"Decoded {len(cue_set)} cues as {decoder.selected_format.value}")

    # Walk the timeline the way a renderer would
    for time_us in cue_set.event_times:
        visible = cue_set.cues_at(time_us)
        texts = [cue.text.replace("\n", " / ") for cue in visible]
        print(f"{micros_to_timestamp(time_us)}  {texts}")

if __name__ == "__main__":
    main()
