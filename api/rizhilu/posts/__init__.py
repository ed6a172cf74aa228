"""Forum posts with attachments."""
