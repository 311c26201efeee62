"""CCAS Core — drop resolution, quality scoring, emotion meters, hook pacing"""
__version__ = "0.3.0"
