"""engine/detectors — one BaseDetector subclass per module, auto-discovered by LogAnalyzer."""
