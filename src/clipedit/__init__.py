"""clipedit — non-linear video edits driven by ffmpeg.

Keeps an ordered timeline of derived clips, turns each edit (cut, split,
speed, rotate, filter, text, audio, crop, merge) into an ffmpeg argument
list, and exports the final clip at a preset resolution and quality.
"""
