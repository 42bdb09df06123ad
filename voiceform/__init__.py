"""VoiceForm - interview questionnaire with voice answers."""

__version__ = "0.1.0"
