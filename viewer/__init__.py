"""
Viewer - replay visualization

frames.py    numpy RGB frames of a mission state (no display needed)
graphics.py  pygame window stepping through a replay round by round
"""
