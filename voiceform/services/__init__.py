"""Domain services: audio capture, answers, progress, submission and storage."""
