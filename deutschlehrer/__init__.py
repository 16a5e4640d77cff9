"""
DeutschLehrer - German Lesson Chat Tutor

An AI-assisted CLI tutor that turns a pasted lesson text into vocabulary drills
and translation exercises, with feedback from a generative language model.
"""

__version__ = "0.1.0"
