"""
Frame sources.

A FrameSource owns the camera; the loop only asks it for the next frame and
releases every frame it receives.
"""
