"""Audio capture and pre-processing for calibration and dictation."""
