"""Sample implementation units used by deep verification tests."""
