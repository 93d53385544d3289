"""
TeachClone
Teachers upload lessons on video, the platform derives a teaching personality
from them and students chat with the approved AI clone.
"""
__version__ = "1.0.0"
