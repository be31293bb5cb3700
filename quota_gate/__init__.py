"""Daily AI quota gate for the study companion app."""
