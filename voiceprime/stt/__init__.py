"""Speech-to-text engines: faster-whisper (context-primed) and Vosk."""
